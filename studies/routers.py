"""
URL mappings for the EPIC-Q coordination API.

Paths mirror the portal front-end; trailing slashes are deliberately
omitted.
"""
from django.urls import path, include

from .auth_views import login_view
from .views import health
from .views.hospitals import (
    hospital_delete_analysis,
    hospital_confirm_delete,
    hospital_deactivate,
    hospitals_bulk_delete,
    project_hospital_detail,
)
from .views.users import (
    user_delete_analysis,
    user_confirm_delete,
    user_deactivate,
    user_reactivate,
)
from .views.coordinator import (
    recruitment_periods,
    recruitment_period_detail,
    coordinator_progress,
    coordinator_ethics,
)


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    # Hospital cascade
    path('api/hospitals/bulk-delete', hospitals_bulk_delete, name='hospitals_bulk_delete'),
    path('api/hospitals/<int:pk>/delete-analysis', hospital_delete_analysis, name='hospital_delete_analysis'),
    path('api/hospitals/<int:pk>/confirm-delete', hospital_confirm_delete, name='hospital_confirm_delete'),
    path('api/hospitals/<int:pk>/deactivate', hospital_deactivate, name='hospital_deactivate'),
    # Project participation
    path('api/admin/projects/<int:project_id>/hospitals/<int:hospital_id>', project_hospital_detail,
         name='project_hospital_detail'),
    # Coordinator accounts
    path('api/admin/users/<int:pk>/delete-analysis', user_delete_analysis, name='user_delete_analysis'),
    path('api/admin/users/<int:pk>/confirm-delete', user_confirm_delete, name='user_confirm_delete'),
    path('api/admin/users/<int:pk>/deactivate', user_deactivate, name='user_deactivate'),
    path('api/admin/users/<int:pk>/reactivate', user_reactivate, name='user_reactivate'),
    # Coordinator self-service
    path('api/coordinator/recruitment-periods', recruitment_periods, name='recruitment_periods'),
    path('api/coordinator/recruitment-periods/<int:pk>', recruitment_period_detail, name='recruitment_period_detail'),
    path('api/coordinator/progress', coordinator_progress, name='coordinator_progress'),
    path('api/coordinator/ethics', coordinator_ethics, name='coordinator_ethics'),
]
