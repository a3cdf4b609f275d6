"""
Django admin registrations for the study models.

Superusers can inspect hospitals, assignments and recruitment periods via
``/admin/``.  Deleting a hospital from here bypasses the cascade rules of
``studies.services.cascade``; use the API for that.
"""

from django.contrib import admin

from .models import (
    User,
    Project,
    Hospital,
    HospitalContact,
    HospitalDetails,
    ProjectHospital,
    ProjectCoordinator,
    HospitalProgress,
    RecruitmentPeriod,
    AuditEvent,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'role', 'hospital', 'is_active', 'is_temporary_password')
    list_filter = ('role', 'is_active')
    search_fields = ('email', 'name', 'username')


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'status', 'start_date', 'end_date')
    list_filter = ('status',)
    search_fields = ('name',)


class HospitalContactInline(admin.TabularInline):
    model = HospitalContact
    extra = 0


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'city', 'province', 'status', 'created_at')
    list_filter = ('status', 'province')
    search_fields = ('name', 'city')
    inlines = [HospitalContactInline]


@admin.register(HospitalDetails)
class HospitalDetailsAdmin(admin.ModelAdmin):
    list_display = ('hospital', 'num_beds', 'financing_type', 'has_ethics_committee')


@admin.register(ProjectHospital)
class ProjectHospitalAdmin(admin.ModelAdmin):
    list_display = ('project', 'hospital', 'status', 'required_periods', 'joined_at')
    list_filter = ('status', 'project')
    search_fields = ('hospital__name', 'project__name')


@admin.register(ProjectCoordinator)
class ProjectCoordinatorAdmin(admin.ModelAdmin):
    list_display = ('user', 'project', 'hospital', 'is_active', 'invited_at')
    list_filter = ('is_active', 'project')
    search_fields = ('user__email', 'hospital__name')


@admin.register(HospitalProgress)
class HospitalProgressAdmin(admin.ModelAdmin):
    list_display = ('hospital', 'project', 'ethics_submitted', 'ethics_approved', 'updated_at')
    list_filter = ('ethics_submitted', 'ethics_approved')


@admin.register(RecruitmentPeriod)
class RecruitmentPeriodAdmin(admin.ModelAdmin):
    list_display = ('project_hospital', 'period_number', 'start_date', 'end_date')
    search_fields = ('project_hospital__hospital__name',)


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
