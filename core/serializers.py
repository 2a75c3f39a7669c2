"""
Serializers for authentication, catalog, negotiation and review endpoints.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import Category, Negotiation, Review, Service
from .validators import validate_phone_number, validate_image_url

User = get_user_model()


def _run_django_validator(validator, value):
    try:
        validator(value)
    except DjangoValidationError as e:
        raise serializers.ValidationError(list(e.messages))
    return value


# ============================================================================
# Authentication & User Serializers
# ============================================================================

class UserSerializer(serializers.ModelSerializer):
    """Public representation of a user (no credentials)."""

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'role', 'phone', 'city', 'photo', 'created_at', 'updated_at']
        read_only_fields = fields


class SignupSerializer(serializers.ModelSerializer):
    """
    Serializer for customer signup.

    Fields:
    - email: Required, unique (case-insensitive)
    - password: Required, at least 6 characters
    - name: Required
    - phone: Optional, validated format
    - city: Optional

    Every new account is a CUSTOMER; roles are assigned by admins only.
    """

    password = serializers.CharField(
        write_only=True,
        required=True,
        min_length=6,
        style={'input_type': 'password'}
    )

    class Meta:
        model = User
        fields = ['id', 'email', 'password', 'name', 'phone', 'city', 'role', 'created_at']
        read_only_fields = ['id', 'role', 'created_at']
        extra_kwargs = {
            # Duplicate emails are a conflict, reported by the view as 409
            'email': {'required': True, 'validators': []},
            'name': {'required': True, 'allow_blank': False},
            'phone': {'required': False},
            'city': {'required': False},
        }

    def validate_email(self, value):
        """
        Normalize email to lowercase.
        """
        return value.strip().lower()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required.")
        return value

    def validate_phone(self, value):
        return _run_django_validator(validate_phone_number, value)

    def create(self, validated_data):
        """
        Create a CUSTOMER with a hashed password.

        Username is derived from the email, since AbstractUser requires one
        but authentication uses the email address.
        """
        password = validated_data.pop('password')
        email = validated_data['email']

        user = User(
            username=email[:150],
            role=User.Role.CUSTOMER,
            **validated_data
        )
        user.set_password(password)
        user.save()
        return user


class LoginSerializer(serializers.Serializer):
    """
    Serializer for user login with email and password.

    Minimal validation to prevent user enumeration attacks.
    Actual authentication happens in the view.
    """
    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class LogoutSerializer(serializers.Serializer):
    """Refresh token to blacklist."""
    refresh = serializers.CharField(required=True)


class UserProfileUpdateSerializer(serializers.ModelSerializer):
    """
    Partial update of the caller's own profile.

    Role and email are not editable here.
    """

    class Meta:
        model = User
        fields = ['name', 'phone', 'city', 'photo']

    def validate_name(self, value):
        if not value or not value.strip():
            raise serializers.ValidationError("Name is required.")
        return value.strip()

    def validate_phone(self, value):
        return _run_django_validator(validate_phone_number, value)

    def validate_photo(self, value):
        return _run_django_validator(validate_image_url, value)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(required=True, write_only=True)
    new_password = serializers.CharField(required=True, write_only=True, min_length=6)

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect.")
        return value

    def validate_new_password(self, value):
        try:
            validate_password(value, user=self.context['request'].user)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return value


class UserRoleUpdateSerializer(serializers.Serializer):
    """Admin-only role assignment."""
    role = serializers.ChoiceField(
        choices=User.Role.choices,
        error_messages={'invalid_choice': 'Invalid role.'}
    )


# ============================================================================
# Catalog Serializers
# ============================================================================

class VendorSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'photo']


class CategorySummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'icon']


class CategorySerializer(serializers.ModelSerializer):
    """Create/update/read a category. Names are unique case-insensitively."""

    class Meta:
        model = Category
        fields = ['id', 'name', 'icon', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {
            # Uniqueness is checked case-insensitively in validate_name
            'name': {'validators': []},
        }

    def validate_name(self, value):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError("Category name is required.")

        qs = Category.objects.filter(name__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Category name already exists.")

        return value


class CategoryStatsSerializer(serializers.ModelSerializer):
    service_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Category
        fields = ['id', 'name', 'icon', 'service_count']


class ServicePreviewSerializer(serializers.ModelSerializer):
    class Meta:
        model = Service
        fields = ['id', 'service_title', 'price', 'city', 'avg_rating', 'total_reviews']


class CategoryDetailSerializer(serializers.ModelSerializer):
    """Category with a preview of its five newest services."""

    services = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'icon', 'created_at', 'updated_at', 'services']

    def get_services(self, obj):
        services = obj.services.order_by('-created_at', '-id')[:5]
        return ServicePreviewSerializer(services, many=True).data


class ServiceWriteSerializer(serializers.ModelSerializer):
    """
    Serializer for creating and updating services.

    Fields:
    - service_title: Required, at least 3 characters
    - description: Required, at least 10 characters
    - price: Required, must be positive
    - phone: Required, at least 10 digits
    - city: Required, at least 2 characters
    - category_id: Required, must reference an existing category
    - image: Optional URL

    Read-only fields (auto-populated):
    - vendor: Set from request.user
    - avg_rating, total_reviews: Maintained by the rating aggregator
    """

    category_id = serializers.IntegerField(write_only=True)
    vendor = VendorSummarySerializer(read_only=True)
    category = CategorySummarySerializer(read_only=True)

    class Meta:
        model = Service
        fields = [
            'id', 'service_title', 'description', 'price', 'phone', 'city',
            'image', 'category_id', 'category', 'vendor', 'avg_rating',
            'total_reviews', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'vendor', 'category', 'avg_rating', 'total_reviews', 'created_at', 'updated_at']

    def validate_service_title(self, value):
        value = value.strip()
        if len(value) < 3:
            raise serializers.ValidationError("Service title must be at least 3 characters.")
        return value

    def validate_description(self, value):
        value = value.strip()
        if len(value) < 10:
            raise serializers.ValidationError("Description must be at least 10 characters.")
        return value

    def validate_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("Price must be positive.")
        return value

    def validate_phone(self, value):
        return _run_django_validator(validate_phone_number, value)

    def validate_city(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("City must be at least 2 characters.")
        return value

    def validate_image(self, value):
        return _run_django_validator(validate_image_url, value)

    def validate_category_id(self, value):
        if not Category.objects.filter(pk=value).exists():
            raise serializers.ValidationError("Category not found.")
        return value

    def create(self, validated_data):
        validated_data['vendor'] = self.context['request'].user
        return Service.objects.create(**validated_data)


class ServiceListSerializer(serializers.ModelSerializer):
    """
    Service row for listings. Expects review_count and negotiation_count
    annotations on the queryset.
    """

    vendor = VendorSummarySerializer(read_only=True)
    category = CategorySummarySerializer(read_only=True)
    review_count = serializers.IntegerField(read_only=True)
    negotiation_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Service
        fields = [
            'id', 'service_title', 'description', 'price', 'city', 'image',
            'avg_rating', 'total_reviews', 'vendor', 'category',
            'review_count', 'negotiation_count', 'created_at'
        ]


class ReviewCustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'photo']


class ReviewSerializer(serializers.ModelSerializer):
    """Review as shown on a service."""

    customer = ReviewCustomerSerializer(read_only=True)

    class Meta:
        model = Review
        fields = ['id', 'service_id', 'customer', 'rating', 'comment', 'created_at', 'updated_at']
        read_only_fields = fields


class AcceptedNegotiationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Negotiation
        fields = ['id', 'offer_price', 'created_at']


class ServiceDetailSerializer(serializers.ModelSerializer):
    """
    Full service detail with vendor contact, latest ten reviews and
    latest five accepted offers.
    """

    vendor = serializers.SerializerMethodField()
    category = CategorySummarySerializer(read_only=True)
    reviews = serializers.SerializerMethodField()
    negotiations = serializers.SerializerMethodField()

    class Meta:
        model = Service
        fields = [
            'id', 'service_title', 'description', 'price', 'phone', 'city',
            'image', 'avg_rating', 'total_reviews', 'vendor', 'category',
            'reviews', 'negotiations', 'created_at', 'updated_at'
        ]

    def get_vendor(self, obj):
        vendor = obj.vendor
        return {
            'id': vendor.id,
            'name': vendor.name,
            'email': vendor.email,
            'phone': vendor.phone,
            'photo': vendor.photo,
            'city': vendor.city,
        }

    def get_reviews(self, obj):
        reviews = obj.reviews.select_related('customer').order_by('-created_at', '-id')[:10]
        return ReviewSerializer(reviews, many=True).data

    def get_negotiations(self, obj):
        accepted = obj.negotiations.filter(
            status=Negotiation.Status.ACCEPTED
        ).order_by('-created_at', '-id')[:5]
        return AcceptedNegotiationSerializer(accepted, many=True).data


# ============================================================================
# Negotiation Serializers
# ============================================================================

class NegotiationCreateSerializer(serializers.Serializer):
    """Input for opening a negotiation."""
    service_id = serializers.IntegerField(required=True)
    offer_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=True)

    def validate_offer_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("Offer price must be positive.")
        return value


class NegotiationStatusSerializer(serializers.Serializer):
    """Input for resolving a negotiation."""
    status = serializers.ChoiceField(
        choices=[Negotiation.Status.ACCEPTED, Negotiation.Status.REJECTED],
        error_messages={'invalid_choice': 'Status must be ACCEPTED or REJECTED.'}
    )


class NegotiationServiceSerializer(serializers.ModelSerializer):
    vendor = VendorSummarySerializer(read_only=True)

    class Meta:
        model = Service
        fields = ['id', 'service_title', 'price', 'city', 'image', 'vendor']


class NegotiationCustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'photo']


class NegotiationSerializer(serializers.ModelSerializer):
    service = NegotiationServiceSerializer(read_only=True)
    customer = NegotiationCustomerSerializer(read_only=True)

    class Meta:
        model = Negotiation
        fields = ['id', 'service', 'customer', 'offer_price', 'status', 'created_at', 'updated_at']
        read_only_fields = fields


# ============================================================================
# Review Serializers
# ============================================================================

class ReviewCreateSerializer(serializers.Serializer):
    """
    Input for creating a review.

    Fields:
    - service_id: Required
    - rating: Required, integer from 1-5
    - comment: Optional, at most 500 characters
    """
    service_id = serializers.IntegerField(required=True)
    rating = serializers.IntegerField(
        required=True,
        min_value=1,
        max_value=5,
        error_messages={
            'min_value': 'Rating must be between 1 and 5.',
            'max_value': 'Rating must be between 1 and 5.',
        }
    )
    comment = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        max_length=500,
        trim_whitespace=True
    )


class ReviewUpdateSerializer(serializers.Serializer):
    """Partial update input: rating and/or comment."""
    rating = serializers.IntegerField(
        required=False,
        min_value=1,
        max_value=5,
        error_messages={
            'min_value': 'Rating must be between 1 and 5.',
            'max_value': 'Rating must be between 1 and 5.',
        }
    )
    comment = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        max_length=500,
        trim_whitespace=True
    )

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide rating and/or comment to update.")
        return attrs


class ReviewWithServiceStatsSerializer(ReviewSerializer):
    """Review plus the service's recomputed aggregate."""

    avg_rating = serializers.DecimalField(
        source='service.avg_rating', max_digits=3, decimal_places=2, read_only=True
    )
    total_reviews = serializers.IntegerField(source='service.total_reviews', read_only=True)

    class Meta(ReviewSerializer.Meta):
        fields = ReviewSerializer.Meta.fields + ['avg_rating', 'total_reviews']
        read_only_fields = fields


class CustomerReviewSerializer(serializers.ModelSerializer):
    """A customer's own review with a summary of the reviewed service."""

    service = serializers.SerializerMethodField()

    class Meta:
        model = Review
        fields = ['id', 'rating', 'comment', 'service', 'created_at', 'updated_at']

    def get_service(self, obj):
        service = obj.service
        return {
            'id': service.id,
            'service_title': service.service_title,
            'city': service.city,
            'image': service.image,
            'vendor': {'id': service.vendor_id, 'name': service.vendor.name},
        }
