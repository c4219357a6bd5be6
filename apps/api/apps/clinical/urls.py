"""
Clinical URLs - clients, operativos, appointments, leads and the dashboard
(mounted under /api/v1/).
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    AppointmentViewSet,
    ClientViewSet,
    DashboardMetricsView,
    LeadViewSet,
    OperativoViewSet,
)

router = DefaultRouter()
router.register(r'clients', ClientViewSet, basename='client')
router.register(r'operativos', OperativoViewSet, basename='operativo')
router.register(r'appointments', AppointmentViewSet, basename='appointment')
router.register(r'leads', LeadViewSet, basename='lead')

urlpatterns = [
    path('dashboard/metrics/', DashboardMetricsView.as_view(), name='dashboard-metrics'),
    path('', include(router.urls)),
]
