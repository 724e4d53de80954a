"""
URL mappings for the dispatch API.

Trailing slashes are omitted, matching the paths the ward clients
already call.  Literal segments (``active``, ``nearby``...) are listed
before the ``<uuid:pk>`` routes they would otherwise shadow.
"""
from django.urls import include, path

from .auth_views import jwt_logout_view, jwt_refresh_view, login_view
from .views import dashboard, equipment, health, requests, users, workload

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),

    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout'),
    path('api/auth/me', users.me, name='me'),

    # Transport requests
    path('api/requests', requests.requests_collection, name='requests'),
    path('api/requests/active', requests.active_requests, name='requests_active'),
    path('api/requests/my-requests', requests.my_requests, name='requests_mine'),
    path('api/requests/assigned', requests.assigned_requests, name='requests_assigned'),
    path('api/requests/<uuid:pk>', requests.request_detail, name='request_detail'),
    path('api/requests/<uuid:pk>/status', requests.request_update_status, name='request_status'),
    path('api/requests/<uuid:pk>/assign', requests.request_assign, name='request_assign'),

    # Equipment
    path('api/equipment', equipment.equipment_list, name='equipment'),
    path('api/equipment/nearby', equipment.equipment_nearby, name='equipment_nearby'),
    path('api/equipment/search', equipment.equipment_search, name='equipment_search'),
    path('api/equipment/<uuid:pk>', equipment.equipment_detail, name='equipment_detail'),
    path('api/equipment/<uuid:pk>/status', equipment.equipment_update_status, name='equipment_status'),

    # Workload analytics
    path('api/workload', workload.workload_summary, name='workload'),
    path('api/workload/staff', workload.workload_staff, name='workload_staff'),
    path('api/workload/staff/<int:pk>', workload.workload_staff_detail, name='workload_staff_detail'),

    # Dashboard
    path('api/dashboard', dashboard.dashboard, name='dashboard'),
    path('api/dashboard/stats', dashboard.dashboard_stats, name='dashboard_stats'),
]
