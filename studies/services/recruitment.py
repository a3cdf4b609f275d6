"""
Recruitment period rules.

A project hospital registers a small number of dated recruitment windows.
Their status is never stored: :func:`period_status` derives it from the
dates on every read and is the only place that derivation lives.
"""
from __future__ import annotations

import datetime
import logging
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Max, Q
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from studies.exceptions import LimitExceeded
from studies.models import ProjectHospital, RecruitmentPeriod

logger = logging.getLogger(__name__)

STATUS_PLANNED = 'planned'
STATUS_ACTIVE = 'active'
STATUS_COMPLETED = 'completed'

STRICT_PERIOD_DAYS = 7
STRICT_MIN_GAP_DAYS = 4 * 30


def _as_date(value) -> datetime.date:
    if isinstance(value, datetime.datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    return value


def period_status(start_date: datetime.date, end_date: datetime.date, now=None) -> str:
    """Return ``planned``, ``active`` or ``completed`` for ``now``.

    Both bounds are inclusive: a period is active on its first and on its
    last day.
    """
    today = _as_date(now) if now is not None else timezone.localdate()
    if today < start_date:
        return STATUS_PLANNED
    if today <= end_date:
        return STATUS_ACTIVE
    return STATUS_COMPLETED


def max_periods_for(project_hospital: ProjectHospital) -> int:
    ceiling = settings.RECRUITMENT_MAX_PERIODS
    required = project_hospital.required_periods
    if required:
        return min(required, ceiling)
    return ceiling


def next_period_number(project_hospital: ProjectHospital) -> int:
    """Highest existing period number plus one, or 1 when there are none."""
    current = RecruitmentPeriod.objects.filter(
        project_hospital=project_hospital
    ).aggregate(top=Max('period_number'))['top']
    return (current or 0) + 1


def _check_dates(start_date, end_date, today, *, check_start=True) -> None:
    if check_start and start_date < today:
        raise ValidationError({'startDate': 'start date cannot be earlier than today'})
    if end_date <= start_date:
        raise ValidationError({'endDate': 'end date must be after the start date'})


def validate_period_schedule(project_hospital: ProjectHospital, period_number: int,
                             start_date: datetime.date, end_date: datetime.date) -> None:
    """Strict scheduling rules for recruitment weeks.

    Periods start on a Monday, last exactly seven days, do not overlap any
    other period of the same project hospital and begin at least four
    months after the end of the previous period.  Only enforced on creation
    when ``RECRUITMENT_STRICT_SCHEDULE`` is enabled.
    """
    siblings = RecruitmentPeriod.objects.filter(project_hospital=project_hospital)
    if siblings.filter(period_number=period_number).exists():
        raise ValidationError({'periodNumber': f'period {period_number} already exists for this hospital'})
    if start_date.weekday() != 0:
        raise ValidationError({'startDate': 'start date must be a Monday'})
    if (end_date - start_date).days != STRICT_PERIOD_DAYS:
        raise ValidationError({'endDate': f'period must last exactly {STRICT_PERIOD_DAYS} days'})
    overlapping = siblings.filter(
        Q(start_date__lte=start_date, end_date__gte=start_date)
        | Q(start_date__lte=end_date, end_date__gte=end_date)
        | Q(start_date__gte=start_date, end_date__lte=end_date)
    )
    if overlapping.exists():
        raise ValidationError({'startDate': 'period overlaps an existing period'})
    previous = siblings.filter(period_number__lt=period_number).order_by('-period_number').first()
    if previous and (start_date - previous.end_date).days < STRICT_MIN_GAP_DAYS:
        raise ValidationError({'startDate': 'there must be at least 4 months between recruitment periods'})


def create_period(project_hospital: ProjectHospital, start_date: datetime.date, end_date: datetime.date,
                  *, today: Optional[datetime.date] = None) -> RecruitmentPeriod:
    today = today or timezone.localdate()
    _check_dates(start_date, end_date, today)

    with transaction.atomic():
        # Serialise concurrent creators for the same project hospital so the
        # count check and the insert see the same rows.
        locked = ProjectHospital.objects.select_for_update().get(pk=project_hospital.pk)
        limit = max_periods_for(locked)
        existing = RecruitmentPeriod.objects.filter(project_hospital=locked).count()
        if existing >= limit:
            raise LimitExceeded(
                f'this hospital can only have {limit} recruitment periods; {existing} already created'
            )
        number = next_period_number(locked)
        if settings.RECRUITMENT_STRICT_SCHEDULE:
            validate_period_schedule(locked, number, start_date, end_date)
        period = RecruitmentPeriod.objects.create(
            project_hospital=locked,
            period_number=number,
            start_date=start_date,
            end_date=end_date,
        )
    logger.info('recruitment period %s created for project hospital %s', period.period_number, locked.pk)
    return period


def update_period(period: RecruitmentPeriod, start_date: Optional[datetime.date] = None,
                  end_date: Optional[datetime.date] = None, *,
                  today: Optional[datetime.date] = None) -> RecruitmentPeriod:
    """Move a period's dates; the period count and status are untouched."""
    today = today or timezone.localdate()
    new_start = start_date or period.start_date
    new_end = end_date or period.end_date
    _check_dates(new_start, new_end, today, check_start=start_date is not None)
    period.start_date = new_start
    period.end_date = new_end
    period.save(update_fields=['start_date', 'end_date', 'updated_at'])
    return period


def delete_period(period: RecruitmentPeriod) -> None:
    period.delete()


def serialize_period(period: RecruitmentPeriod, now=None) -> dict:
    return {
        'id': period.id,
        'periodNumber': period.period_number,
        'startDate': period.start_date.isoformat(),
        'endDate': period.end_date.isoformat(),
        'status': period_status(period.start_date, period.end_date, now),
    }


def list_periods(project_hospital: ProjectHospital, now=None) -> list[dict]:
    qs = RecruitmentPeriod.objects.filter(project_hospital=project_hospital).order_by('start_date', 'period_number')
    return [serialize_period(p, now) for p in qs]
