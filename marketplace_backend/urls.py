"""
URL configuration for the marketplace_backend project.

Every API route lives under /api/.
"""
from django.contrib import admin
from django.urls import path

from core.views import (
    CategoryDetailView,
    CategoryListCreateView,
    CategoryStatsView,
    ChangePasswordView,
    CustomTokenRefreshView,
    LoginView,
    LogoutView,
    MeView,
    MyReviewsView,
    NegotiationDetailView,
    NegotiationListCreateView,
    NegotiationStatsView,
    NegotiationStatusView,
    ReviewCreateView,
    ReviewDetailView,
    ServiceDetailView,
    ServiceListCreateView,
    ServiceRatingSummaryView,
    ServiceReviewsView,
    SignupView,
    UserListView,
    UserProfileView,
    UserRoleUpdateView,
    VendorServicesView,
)


urlpatterns = [
    path('admin/', admin.site.urls),

    # Authentication endpoints
    path('api/auth/signup/', SignupView.as_view(), name='auth_signup'),
    path('api/auth/login/', LoginView.as_view(), name='auth_login'),
    path('api/auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('api/auth/logout/', LogoutView.as_view(), name='auth_logout'),
    path('api/auth/me/', MeView.as_view(), name='auth_me'),

    # User endpoints
    path('api/users/', UserListView.as_view(), name='user_list'),
    path('api/users/profile/', UserProfileView.as_view(), name='user_profile'),
    path('api/users/change-password/', ChangePasswordView.as_view(), name='user_change_password'),
    path('api/users/<int:pk>/role/', UserRoleUpdateView.as_view(), name='user_role_update'),

    # Category endpoints
    path('api/categories/', CategoryListCreateView.as_view(), name='category_list'),
    path('api/categories/stats/', CategoryStatsView.as_view(), name='category_stats'),
    path('api/categories/<int:pk>/', CategoryDetailView.as_view(), name='category_detail'),

    # Service endpoints
    path('api/services/', ServiceListCreateView.as_view(), name='service_list'),
    path('api/services/vendor/me/', VendorServicesView.as_view(), name='vendor_services'),
    path('api/services/<int:pk>/', ServiceDetailView.as_view(), name='service_detail'),
    path('api/services/<int:pk>/reviews/', ServiceReviewsView.as_view(), name='service_reviews'),
    path('api/services/<int:pk>/rating-summary/', ServiceRatingSummaryView.as_view(), name='service_rating_summary'),

    # Negotiation endpoints
    path('api/negotiations/', NegotiationListCreateView.as_view(), name='negotiation_list'),
    path('api/negotiations/stats/', NegotiationStatsView.as_view(), name='negotiation_stats'),
    path('api/negotiations/<int:pk>/', NegotiationDetailView.as_view(), name='negotiation_detail'),
    path('api/negotiations/<int:pk>/status/', NegotiationStatusView.as_view(), name='negotiation_status'),

    # Review endpoints
    path('api/reviews/', ReviewCreateView.as_view(), name='review_create'),
    path('api/reviews/me/', MyReviewsView.as_view(), name='my_reviews'),
    path('api/reviews/<int:pk>/', ReviewDetailView.as_view(), name='review_detail'),
]
