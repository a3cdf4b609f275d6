"""
Database models for the EPIC-Q coordination backend.

These models capture the concepts the portal works with: hospitals and
the records they own, study projects, the join records binding hospitals
and coordinators to a project, ethics progress and recruitment periods.
Recruitment period status is deliberately not stored; it is derived from
the stored dates on every read (see ``studies.services.recruitment``).
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser, UserManager as BaseUserManager
from django.db import models


class UserManager(BaseUserManager):
    """Manager that fills ``username`` from the e-mail address when omitted."""

    def create_user(self, username=None, email=None, password=None, **extra_fields):
        if username is None:
            username = (email or '').lower()
        return super().create_user(username, email=email, password=password, **extra_fields)

    def create_superuser(self, username=None, email=None, password=None, **extra_fields):
        if username is None:
            username = (email or '').lower()
        extra_fields.setdefault('role', 'admin')
        return super().create_superuser(username, email=email, password=password, **extra_fields)


class User(AbstractUser):
    """Portal account.

    Roles mirror the front-end: ``admin`` manages hospitals and accounts,
    ``coordinator`` manages one or more hospitals inside a project through
    :class:`ProjectCoordinator` rows.  ``hospital`` is the primary hospital
    shown in the coordinator's session context.
    """
    ROLE_ADMIN = 'admin'
    ROLE_COORDINATOR = 'coordinator'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_COORDINATOR, 'Coordinator'),
    ]
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_COORDINATOR, db_index=True)
    hospital = models.ForeignKey(
        'Hospital', null=True, blank=True, on_delete=models.SET_NULL, related_name='users'
    )
    is_temporary_password = models.BooleanField(default=False)
    reset_token = models.CharField(max_length=128, blank=True, null=True)
    reset_token_expiry = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"

    @property
    def display_name(self) -> str:
        return self.name or self.get_full_name() or self.email


class Project(models.Model):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name


class Hospital(models.Model):
    """A care facility participating in the study.

    The hospital is the root aggregate for contacts, details, metrics,
    alerts and communications, and joins projects through
    :class:`ProjectHospital`.
    """
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]
    name = models.CharField(max_length=255)
    province = models.CharField(max_length=120, blank=True)
    city = models.CharField(max_length=120, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_activity_at = models.DateTimeField(null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.city})" if self.city else self.name


class HospitalContact(models.Model):
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='contacts')
    role = models.CharField(max_length=64, blank=True)
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)
    is_primary = models.BooleanField(default=False)

    def __str__(self) -> str:
        return f"{self.name} @ {self.hospital_id}"


class HospitalDetails(models.Model):
    hospital = models.OneToOneField(Hospital, on_delete=models.CASCADE, related_name='details')
    num_beds = models.PositiveIntegerField(null=True, blank=True)
    num_operating_rooms = models.PositiveIntegerField(null=True, blank=True)
    num_icu_beds = models.PositiveIntegerField(null=True, blank=True)
    financing_type = models.CharField(max_length=64, blank=True)
    has_ethics_committee = models.BooleanField(default=False)
    university_affiliated = models.BooleanField(default=False)
    notes = models.TextField(blank=True)

    def __str__(self) -> str:
        return f"details({self.hospital_id})"


class ProjectHospital(models.Model):
    """A hospital's participation in one project.

    A hospital with any ``active`` participation cannot be deleted or
    deactivated.  ``required_periods`` lets a project ask for fewer
    recruitment periods than the global ceiling.
    """
    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
    ]
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='project_hospitals')
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='project_hospitals')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    required_periods = models.PositiveSmallIntegerField(null=True, blank=True)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [('project', 'hospital')]

    def __str__(self) -> str:
        return f"{self.hospital_id} in {self.project_id} ({self.status})"


class ProjectCoordinator(models.Model):
    """A user's coordinator role for one hospital within one project.

    ``hospital`` is nulled when the hospital is removed so the deactivated
    assignment remains as history; the row goes away with its user.
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='project_coordinators')
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='project_coordinators')
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='project_coordinators'
    )
    role = models.CharField(max_length=32, default='coordinator')
    is_active = models.BooleanField(default=True, db_index=True)
    invited_at = models.DateTimeField(auto_now_add=True)
    accepted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=['user', 'is_active'], name='studies_pro_user_id_3c1f0a_idx'),
            models.Index(fields=['hospital', 'is_active'], name='studies_pro_hospita_8e2b4d_idx'),
        ]

    def __str__(self) -> str:
        state = 'active' if self.is_active else 'inactive'
        return f"coord u={self.user_id} h={self.hospital_id} p={self.project_id} ({state})"


class HospitalProgress(models.Model):
    """Ethics approval workflow state of a hospital within a project."""
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='progress')
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='hospital_progress')
    project_hospital = models.OneToOneField(
        ProjectHospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='progress'
    )
    ethics_submitted = models.BooleanField(default=False)
    ethics_submitted_date = models.DateField(null=True, blank=True)
    ethics_approved = models.BooleanField(default=False)
    ethics_approved_date = models.DateField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = [('hospital', 'project')]

    def __str__(self) -> str:
        return f"progress h={self.hospital_id} p={self.project_id}"


class RecruitmentPeriod(models.Model):
    """A dated recruitment window, numbered sequentially per project hospital."""
    project_hospital = models.ForeignKey(
        ProjectHospital, on_delete=models.CASCADE, related_name='recruitment_periods'
    )
    period_number = models.PositiveIntegerField()
    start_date = models.DateField()
    end_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = [('project_hospital', 'period_number')]
        ordering = ['start_date']

    def __str__(self) -> str:
        return f"period #{self.period_number} {self.start_date:%F}~{self.end_date:%F}"


class CaseMetric(models.Model):
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='case_metrics')
    project = models.ForeignKey(Project, null=True, blank=True, on_delete=models.SET_NULL, related_name='case_metrics')
    recorded_on = models.DateField()
    cases_created = models.PositiveIntegerField(default=0)
    cases_completed = models.PositiveIntegerField(default=0)
    completion_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=0)

    class Meta:
        indexes = [models.Index(fields=['hospital', 'recorded_on'], name='studies_cas_hospita_5a7e21_idx')]


class Alert(models.Model):
    SEVERITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
    ]
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='alerts')
    alert_type = models.CharField(max_length=64)
    severity = models.CharField(max_length=16, choices=SEVERITY_CHOICES, default='medium')
    message = models.TextField()
    is_resolved = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)


class Communication(models.Model):
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='communications')
    sent_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='communications_sent')
    channel = models.CharField(max_length=32, default='email')
    subject = models.CharField(max_length=255)
    body = models.TextField(blank=True)
    status = models.CharField(max_length=16, default='sent')
    created_at = models.DateTimeField(auto_now_add=True)


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='studies_aud_action_4d9c7b_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='studies_aud_object__1b6f3e_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.object_type}#{self.object_id}"
