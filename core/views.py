"""
API views for the service marketplace.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.contrib.auth import authenticate, get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.tokens import RefreshToken

from . import workflows
from .exceptions import DuplicateEmail, Forbidden, ValidationError
from .models import Category, Negotiation, Review, Service
from .permissions import (
    AccessPolicy,
    IsAdmin,
    IsCustomerOrAdmin,
    IsVendorOrAdmin,
    ReadOnlyOrAdmin,
    allowed,
)
from .serializers import (
    CategoryDetailSerializer,
    CategorySerializer,
    CategoryStatsSerializer,
    ChangePasswordSerializer,
    CustomerReviewSerializer,
    LoginSerializer,
    LogoutSerializer,
    NegotiationCreateSerializer,
    NegotiationSerializer,
    NegotiationStatusSerializer,
    ReviewCreateSerializer,
    ReviewSerializer,
    ReviewUpdateSerializer,
    ReviewWithServiceStatsSerializer,
    ServiceDetailSerializer,
    ServiceListSerializer,
    ServiceWriteSerializer,
    SignupSerializer,
    UserProfileUpdateSerializer,
    UserRoleUpdateSerializer,
    UserSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


def get_client_ip(request):
    """
    Get client IP address from request.
    Handles proxy headers for accurate IP detection.
    """
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def token_pair_for(user):
    refresh = RefreshToken.for_user(user)
    return {
        'access': str(refresh.access_token),
        'refresh': str(refresh),
    }


class StandardResultsSetPagination(PageNumberPagination):
    """Page-number pagination; clients may request up to 100 rows per page."""
    page_size_query_param = 'page_size'
    max_page_size = 100


# ============================================================================
# Authentication
# ============================================================================

class SignupView(APIView):
    """
    API endpoint for account creation.

    POST /api/auth/signup/
    Request body: {"email", "password", "name", "phone"?, "city"?}

    Success response (201): {"user": {...}, "access": "...", "refresh": "..."}

    Error responses:
    - 400: Validation errors
    - 409: Email already registered (including concurrent duplicate signups)

    New accounts are always CUSTOMER.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        email = serializer.validated_data['email']
        if User.objects.filter(email__iexact=email).exists():
            logger.warning(f"Signup with existing email. Email: {email}, IP: {get_client_ip(request)}")
            raise DuplicateEmail()

        try:
            with transaction.atomic():
                user = serializer.save()
        except IntegrityError:
            # Concurrent signup with the same email won the race
            logger.warning(f"Signup unique constraint hit. Email: {email}, IP: {get_client_ip(request)}")
            raise DuplicateEmail()

        logger.info(f"User registered. ID: {user.id}, Email: {user.email}")

        return Response(
            {'user': UserSerializer(user).data, **token_pair_for(user)},
            status=status.HTTP_201_CREATED
        )


class LoginView(APIView):
    """
    API endpoint for user login with JWT token generation.

    Security features:
    - Rate limiting through the 'login' throttle scope
    - Generic error messages to prevent user enumeration
    - Failed login attempt logging for security monitoring
    - Case-insensitive email lookup

    POST /api/auth/login/
    Request body: {"email": "user@example.com", "password": "password123"}

    Success response (200):
    {
        "access": "<jwt_access_token>",
        "refresh": "<jwt_refresh_token>",
        "user": {"id": 1, "email": "user@example.com", "role": "CUSTOMER", ...}
    }

    Error response (401): {"detail": "Invalid credentials", "code": "authentication_failed"}
    """
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'login'

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        email = serializer.validated_data['email'].lower().strip()
        password = serializer.validated_data['password']
        client_ip = get_client_ip(request)

        user = authenticate(request, email=email, password=password)
        if user is None:
            logger.warning(f"Failed login attempt. Email: {email}, IP: {client_ip}")
            return Response(
                {'detail': 'Invalid credentials', 'code': 'authentication_failed'},
                status=status.HTTP_401_UNAUTHORIZED
            )

        logger.info(f"Successful login. Email: {email}, IP: {client_ip}")

        return Response({
            **token_pair_for(user),
            'user': UserSerializer(user).data,
        }, status=status.HTTP_200_OK)


class CustomTokenRefreshView(APIView):
    """
    API endpoint for refreshing JWT access tokens.

    Security features:
    - Rate limiting through the 'refresh' throttle scope
    - Refresh token validation (signature, expiration, type)
    - Blacklist checking (tokens blacklisted after logout or rotation)
    - Token rotation: a new refresh token is issued and the old one blacklisted

    POST /api/auth/refresh/
    Request body: {"refresh": "<jwt_refresh_token>"}

    Success response (200): {"access": "...", "refresh": "..."}

    Error responses:
    - 400: Missing refresh field
    - 401: Invalid, expired, or blacklisted refresh token
    - 429: Rate limit exceeded
    """
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'refresh'

    def post(self, request, *args, **kwargs):
        serializer = TokenRefreshSerializer(data=request.data)
        client_ip = get_client_ip(request)

        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as e:
            logger.warning(f"Failed token refresh attempt. Error: {e}, IP: {client_ip}")
            return Response(
                {'detail': str(e), 'code': 'token_not_valid'},
                status=status.HTTP_401_UNAUTHORIZED
            )

        logger.info(f"Successful token refresh. IP: {client_ip}")
        return Response(serializer.validated_data, status=status.HTTP_200_OK)


class LogoutView(APIView):
    """
    Blacklist the caller's refresh token.

    POST /api/auth/logout/
    Request body: {"refresh": "<jwt_refresh_token>"}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            token = RefreshToken(serializer.validated_data['refresh'])
        except TokenError as e:
            logger.warning(f"Logout with invalid token. User: {request.user.id}, Error: {e}")
            raise ValidationError({'refresh': ['Invalid or expired refresh token.']})

        if str(token.get('user_id')) != str(request.user.id):
            logger.warning(f"Logout with another user's token. User: {request.user.id}")
            raise Forbidden('Access denied. You can only revoke your own tokens.')

        token.blacklist()
        logger.info(f"User logged out. ID: {request.user.id}")

        return Response({'detail': 'Successfully logged out.'}, status=status.HTTP_200_OK)


class MeView(APIView):
    """GET /api/auth/me/ - the authenticated user."""
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        return Response(UserSerializer(request.user).data)


# ============================================================================
# Users
# ============================================================================

class UserProfileView(APIView):
    """
    GET/PATCH /api/users/profile/

    PATCH accepts name, phone, city and photo. Role and email are not
    editable through this endpoint.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        return Response(UserSerializer(request.user).data)

    def patch(self, request, *args, **kwargs):
        serializer = UserProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        logger.info(
            f"Profile updated. User: {user.id}, Fields: {', '.join(sorted(serializer.validated_data))}"
        )
        return Response(UserSerializer(user).data)

    put = patch


class ChangePasswordView(APIView):
    """POST /api/users/change-password/ with current_password and new_password."""
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)

        request.user.set_password(serializer.validated_data['new_password'])
        request.user.save(update_fields=['password', 'updated_at'])

        logger.info(f"Password changed. User: {request.user.id}, IP: {get_client_ip(request)}")
        return Response({'detail': 'Password updated successfully.'})


class UserRoleUpdateView(APIView):
    """
    PATCH /api/users/<id>/role/ - admin-only role assignment.

    Request body: {"role": "CUSTOMER" | "VENDOR" | "ADMIN"}
    """
    permission_classes = [IsAuthenticated, IsAdmin]

    def patch(self, request, pk, *args, **kwargs):
        serializer = UserRoleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = get_object_or_404(User, pk=pk)
        old_role = user.role
        user.role = serializer.validated_data['role']
        user.save(update_fields=['role', 'updated_at'])

        logger.info(
            f"User role updated. User: {user.id}, Old Role: {old_role}, "
            f"New Role: {user.role}, Admin: {request.user.id}"
        )
        return Response(UserSerializer(user).data)


class UserListView(generics.ListAPIView):
    """
    GET /api/users/ - admin-only, paginated.

    Query Parameters:
    - role: CUSTOMER, VENDOR or ADMIN
    - city: case-insensitive partial match
    """
    permission_classes = [IsAuthenticated, IsAdmin]
    serializer_class = UserSerializer
    pagination_class = StandardResultsSetPagination

    def get_queryset(self):
        queryset = User.objects.all().order_by('-created_at', '-id')

        role = self.request.query_params.get('role')
        if role:
            if role not in User.Role.values:
                raise ValidationError({'role': ['Invalid role.']})
            queryset = queryset.filter(role=role)

        city = self.request.query_params.get('city')
        if city:
            queryset = queryset.filter(city__icontains=city)

        return queryset


# ============================================================================
# Categories
# ============================================================================

class CategoryListCreateView(APIView):
    """
    GET /api/categories/ - public list ordered by name.
    POST /api/categories/ - admin only.
    """
    permission_classes = [ReadOnlyOrAdmin]

    def get(self, request, *args, **kwargs):
        categories = Category.objects.order_by('name')
        return Response(CategorySerializer(categories, many=True).data)

    def post(self, request, *args, **kwargs):
        serializer = CategorySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        category = serializer.save()

        logger.info(f"Category created. ID: {category.id}, Name: {category.name}, Admin: {request.user.id}")
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)


class CategoryStatsView(APIView):
    """GET /api/categories/stats/ - each category with its service count."""
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        categories = Category.objects.annotate(
            service_count=Count('services')
        ).order_by('name')
        return Response(CategoryStatsSerializer(categories, many=True).data)


class CategoryDetailView(APIView):
    """
    GET /api/categories/<id>/ - category with its five newest services.
    PUT/PATCH/DELETE - admin only. Categories with services cannot be deleted.
    """
    permission_classes = [ReadOnlyOrAdmin]

    def get_object(self, pk):
        return get_object_or_404(Category, pk=pk)

    def get(self, request, pk, *args, **kwargs):
        return Response(CategoryDetailSerializer(self.get_object(pk)).data)

    def patch(self, request, pk, *args, **kwargs):
        category = self.get_object(pk)
        serializer = CategorySerializer(category, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        category = serializer.save()

        logger.info(f"Category updated. ID: {category.id}, Admin: {request.user.id}")
        return Response(CategorySerializer(category).data)

    put = patch

    def delete(self, request, pk, *args, **kwargs):
        category = self.get_object(pk)

        if category.services.exists():
            logger.warning(
                f"Blocked deletion of category with services. ID: {category.id}, Admin: {request.user.id}"
            )
            raise ValidationError({'category': ['Cannot delete category with existing services.']})

        category.delete()
        logger.info(f"Category deleted. ID: {pk}, Admin: {request.user.id}")
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Services
# ============================================================================

def _decimal_param(params, name):
    raw = params.get(name)
    if raw in (None, ''):
        return None
    try:
        value = Decimal(raw)
    except (ValueError, InvalidOperation):
        raise ValidationError({name: [f'Invalid value for "{name}". Must be a valid number.']})
    if not value.is_finite() or value < 0:
        raise ValidationError({name: [f'"{name}" must be a non-negative number.']})
    return value


def _int_param(params, name):
    raw = params.get(name)
    if raw in (None, ''):
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError({name: [f'Invalid value for "{name}". Must be an integer.']})


class ServiceListCreateView(generics.GenericAPIView):
    """
    API endpoint for listing and creating services.

    GET /api/services/ (public)

    Query Parameters:
    - category: category id
    - city: case-insensitive partial match
    - vendor: vendor id
    - min_price / max_price: price range (inclusive)
    - search: matches title or description
    - page, page_size

    Results are ordered by average rating, best first, and each row
    carries review_count and negotiation_count.

    POST /api/services/ (VENDOR or ADMIN)
    Request body: {"service_title", "description", "price", "phone", "city",
                   "category_id", "image"?}
    """
    pagination_class = StandardResultsSetPagination

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsVendorOrAdmin()]
        return [AllowAny()]

    def get_queryset(self):
        params = self.request.query_params
        queryset = Service.objects.select_related('vendor', 'category').annotate(
            review_count=Count('reviews', distinct=True),
            negotiation_count=Count('negotiations', distinct=True)
        )

        category_id = _int_param(params, 'category')
        if category_id is not None:
            queryset = queryset.filter(category_id=category_id)

        vendor_id = _int_param(params, 'vendor')
        if vendor_id is not None:
            queryset = queryset.filter(vendor_id=vendor_id)

        city = params.get('city')
        if city:
            queryset = queryset.filter(city__icontains=city.strip())

        min_price = _decimal_param(params, 'min_price')
        max_price = _decimal_param(params, 'max_price')
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError({'min_price': ['Minimum price cannot be greater than maximum price.']})
        if min_price is not None:
            queryset = queryset.filter(price__gte=min_price)
        if max_price is not None:
            queryset = queryset.filter(price__lte=max_price)

        search = params.get('search')
        if search:
            search = search.strip()
            queryset = queryset.filter(
                Q(service_title__icontains=search) | Q(description__icontains=search)
            )

        return queryset.order_by('-avg_rating', '-created_at', '-id')

    def get(self, request, *args, **kwargs):
        page = self.paginate_queryset(self.get_queryset())
        serializer = ServiceListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def post(self, request, *args, **kwargs):
        serializer = ServiceWriteSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        service = serializer.save()

        logger.info(
            f"Service created. ID: {service.id}, Vendor: {request.user.id}, "
            f"Category: {service.category_id}, IP: {get_client_ip(request)}"
        )
        return Response(ServiceWriteSerializer(service).data, status=status.HTTP_201_CREATED)


class ServiceDetailView(APIView):
    """
    GET /api/services/<id>/ (public) - detail with latest reviews and accepted offers.
    PUT/PATCH/DELETE - the owning vendor or an admin.

    Deleting a service also deletes its negotiations (including PENDING
    ones) and its reviews.
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated(), IsVendorOrAdmin()]

    def get(self, request, pk, *args, **kwargs):
        service = get_object_or_404(Service.objects.select_related('vendor', 'category'), pk=pk)
        return Response(ServiceDetailSerializer(service).data)

    def patch(self, request, pk, *args, **kwargs):
        service = get_object_or_404(Service, pk=pk)

        try:
            AccessPolicy.require_owner(request.user, service.vendor_id, 'update', 'services')
        except Forbidden:
            logger.warning(
                f"Unauthorized service update attempt. Service: {service.id}, "
                f"User: {request.user.id}, IP: {get_client_ip(request)}"
            )
            raise

        serializer = ServiceWriteSerializer(
            service,
            data=request.data,
            partial=request.method == 'PATCH',
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        service = serializer.save()

        logger.info(f"Service updated. ID: {service.id}, Actor: {request.user.id}")
        return Response(ServiceWriteSerializer(service).data)

    put = patch

    def delete(self, request, pk, *args, **kwargs):
        service = get_object_or_404(Service, pk=pk)

        try:
            AccessPolicy.require_owner(request.user, service.vendor_id, 'delete', 'services')
        except Forbidden:
            logger.warning(
                f"Unauthorized service delete attempt. Service: {service.id}, "
                f"User: {request.user.id}, IP: {get_client_ip(request)}"
            )
            raise

        pending = service.negotiations.filter(status=Negotiation.Status.PENDING).count()
        service.delete()

        logger.info(
            f"Service deleted. ID: {pk}, Actor: {request.user.id}, "
            f"Pending negotiations removed: {pending}"
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class VendorServicesView(generics.ListAPIView):
    """GET /api/services/vendor/me/ - the caller's own services."""
    permission_classes = [IsAuthenticated, IsVendorOrAdmin]
    serializer_class = ServiceListSerializer
    pagination_class = StandardResultsSetPagination

    def get_queryset(self):
        return Service.objects.filter(vendor=self.request.user).select_related(
            'vendor', 'category'
        ).annotate(
            review_count=Count('reviews', distinct=True),
            negotiation_count=Count('negotiations', distinct=True)
        ).order_by('-created_at', '-id')


# ============================================================================
# Negotiations
# ============================================================================

def scoped_negotiations(user):
    """
    Negotiations visible to user: admins see all, vendors see those on
    their services, everyone else sees their own.
    """
    queryset = Negotiation.objects.select_related('service__vendor', 'customer')
    if user.is_admin():
        return queryset
    if user.is_vendor():
        return queryset.filter(service__vendor=user)
    return queryset.filter(customer=user)


class NegotiationListCreateView(generics.GenericAPIView):
    """
    API endpoint for listing and opening negotiations.

    GET /api/negotiations/
    Query Parameters:
    - status: PENDING, ACCEPTED or REJECTED
    - service: service id

    POST /api/negotiations/ (CUSTOMER or ADMIN)
    Request body: {"service_id": 1, "offer_price": "120.00"}

    Error responses:
    - 400: Invalid offer, or negotiating on your own service
    - 403: Caller is not a customer
    - 404: Service not found
    - 409: A PENDING negotiation already exists for this service
    """
    permission_classes = [IsAuthenticated]
    pagination_class = StandardResultsSetPagination

    def get_queryset(self):
        params = self.request.query_params
        queryset = scoped_negotiations(self.request.user)

        status_filter = params.get('status')
        if status_filter:
            if status_filter not in Negotiation.Status.values:
                raise ValidationError({'status': ['Invalid status.']})
            queryset = queryset.filter(status=status_filter)

        service_id = _int_param(params, 'service')
        if service_id is not None:
            queryset = queryset.filter(service_id=service_id)

        return queryset.order_by('-created_at', '-id')

    def get(self, request, *args, **kwargs):
        page = self.paginate_queryset(self.get_queryset())
        return self.get_paginated_response(NegotiationSerializer(page, many=True).data)

    def post(self, request, *args, **kwargs):
        AccessPolicy.require_role(request.user, User.Role.CUSTOMER)

        serializer = NegotiationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        negotiation = workflows.create_negotiation(
            request.user,
            serializer.validated_data['service_id'],
            serializer.validated_data['offer_price']
        )
        negotiation = scoped_negotiations(request.user).get(pk=negotiation.pk)

        return Response(NegotiationSerializer(negotiation).data, status=status.HTTP_201_CREATED)


class NegotiationDetailView(APIView):
    """
    GET /api/negotiations/<id>/ - admin, the customer, or the service's vendor.
    DELETE /api/negotiations/<id>/ - the customer cancels a PENDING negotiation.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk, *args, **kwargs):
        negotiation = get_object_or_404(
            Negotiation.objects.select_related('service__vendor', 'customer'), pk=pk
        )

        user = request.user
        participants = (negotiation.customer_id, negotiation.service.vendor_id)
        if not any(allowed(user.role, user.id, owner_id) for owner_id in participants):
            logger.warning(f"Unauthorized negotiation access. ID: {negotiation.id}, User: {user.id}")
            raise Forbidden('Access denied.')

        return Response(NegotiationSerializer(negotiation).data)

    def delete(self, request, pk, *args, **kwargs):
        workflows.cancel_negotiation(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class NegotiationStatusView(APIView):
    """
    PATCH /api/negotiations/<id>/status/ (VENDOR or ADMIN)
    Request body: {"status": "ACCEPTED" | "REJECTED"}

    Error responses:
    - 400: Invalid status, or negotiation no longer PENDING
    - 403: Caller does not vend the service
    - 404: Negotiation not found
    """
    permission_classes = [IsAuthenticated, IsVendorOrAdmin]

    def patch(self, request, pk, *args, **kwargs):
        serializer = NegotiationStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        negotiation = workflows.resolve_negotiation(
            request.user, pk, serializer.validated_data['status']
        )
        negotiation = Negotiation.objects.select_related(
            'service__vendor', 'customer'
        ).get(pk=negotiation.pk)

        return Response(NegotiationSerializer(negotiation).data)

    put = patch


class NegotiationStatsView(APIView):
    """
    GET /api/negotiations/stats/ - counts by status for the caller's scope
    and the acceptance rate as a rounded percentage.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        stats = scoped_negotiations(request.user).aggregate(
            total=Count('id'),
            pending=Count('id', filter=Q(status=Negotiation.Status.PENDING)),
            accepted=Count('id', filter=Q(status=Negotiation.Status.ACCEPTED)),
            rejected=Count('id', filter=Q(status=Negotiation.Status.REJECTED)),
        )
        total = stats['total']
        stats['acceptance_rate'] = round(stats['accepted'] * 100 / total) if total else 0
        return Response(stats)


# ============================================================================
# Reviews
# ============================================================================

class ReviewCreateView(APIView):
    """
    API endpoint for creating reviews.

    POST /api/reviews/ (CUSTOMER or ADMIN)
    Request body: {"service_id": 1, "rating": 5, "comment": "Great service!"}

    Success response (201): the review plus the service's recomputed
    avg_rating and total_reviews.

    Error responses:
    - 400: Invalid rating/comment, reviewing your own service, or no
      ACCEPTED negotiation on the service
    - 403: Caller is not a customer
    - 404: Service not found
    - 409: Caller already reviewed this service
    """
    permission_classes = [IsAuthenticated, IsCustomerOrAdmin]

    def post(self, request, *args, **kwargs):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        review = workflows.create_review(
            request.user,
            data['service_id'],
            data['rating'],
            data.get('comment')
        )

        return Response(ReviewWithServiceStatsSerializer(review).data, status=status.HTTP_201_CREATED)


class ReviewDetailView(APIView):
    """
    GET /api/reviews/<id>/ (public)
    PATCH/PUT /api/reviews/<id>/ - rating and/or comment; owner or admin
    DELETE /api/reviews/<id>/ - owner or admin
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated(), IsCustomerOrAdmin()]

    def get(self, request, pk, *args, **kwargs):
        review = get_object_or_404(Review.objects.select_related('customer'), pk=pk)
        return Response(ReviewSerializer(review).data)

    def patch(self, request, pk, *args, **kwargs):
        serializer = ReviewUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        changes = {}
        if 'rating' in serializer.validated_data:
            changes['rating'] = serializer.validated_data['rating']
        if 'comment' in serializer.validated_data:
            changes['comment'] = serializer.validated_data['comment']

        review = workflows.update_review(request.user, pk, **changes)
        return Response(ReviewWithServiceStatsSerializer(review).data)

    put = patch

    def delete(self, request, pk, *args, **kwargs):
        service = workflows.delete_review(request.user, pk)
        return Response({
            'detail': 'Review deleted.',
            'service_id': service.id,
            'avg_rating': str(service.avg_rating),
            'total_reviews': service.total_reviews,
        })


class ServiceReviewsView(generics.ListAPIView):
    """
    GET /api/services/<id>/reviews/ (public, paginated)

    The paginated payload carries a "stats" object with the service's
    average_rating and total_reviews.
    """
    permission_classes = [AllowAny]
    serializer_class = ReviewSerializer
    pagination_class = StandardResultsSetPagination

    def get_queryset(self):
        return Review.objects.filter(
            service_id=self.service.id
        ).select_related('customer').order_by('-created_at', '-id')

    def list(self, request, *args, **kwargs):
        self.service = get_object_or_404(Service, pk=kwargs['pk'])
        response = super().list(request, *args, **kwargs)
        response.data['stats'] = {
            'average_rating': str(self.service.avg_rating),
            'total_reviews': self.service.total_reviews,
        }
        return response


class ServiceRatingSummaryView(APIView):
    """GET /api/services/<id>/rating-summary/ - average, total and 1..5 distribution."""
    permission_classes = [AllowAny]

    def get(self, request, pk, *args, **kwargs):
        service = get_object_or_404(Service, pk=pk)

        counts = dict(
            Review.objects.filter(service=service)
            .order_by()
            .values_list('rating')
            .annotate(count=Count('id'))
        )
        distribution = {str(star): counts.get(star, 0) for star in range(1, 6)}

        return Response({
            'service_id': service.id,
            'average_rating': str(service.avg_rating),
            'total_reviews': service.total_reviews,
            'distribution': distribution,
        })


class MyReviewsView(generics.ListAPIView):
    """GET /api/reviews/me/ - the caller's reviews, newest first."""
    permission_classes = [IsAuthenticated, IsCustomerOrAdmin]
    serializer_class = CustomerReviewSerializer
    pagination_class = StandardResultsSetPagination

    def get_queryset(self):
        return Review.objects.filter(
            customer=self.request.user
        ).select_related('service__vendor').order_by('-created_at', '-id')
