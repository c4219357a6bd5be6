"""
Authentication URLs (mounted under /api/auth/).
"""
from django.urls import path

from .views import CurrentUserView, LoginView, OphthalmologistListView, SeedView

urlpatterns = [
    path('login/', LoginView.as_view(), name='auth-login'),
    path('seed/', SeedView.as_view(), name='auth-seed'),
    path('me/', CurrentUserView.as_view(), name='auth-me'),
    path('ophthalmologists/', OphthalmologistListView.as_view(), name='auth-ophthalmologists'),
]
