"""
Data model for the service marketplace.

Users act as customers, vendors, or admins. Vendors list services inside
categories, customers negotiate prices on those services and review them.
"""

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import MinLengthValidator, MinValueValidator, MaxValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from .validators import validate_phone_number, validate_image_url


class User(AbstractUser):
    """
    Custom User model extending Django's AbstractUser.

    Additional fields:
    - email: Required, unique email address (login identifier)
    - name: Display name
    - role: CUSTOMER, VENDOR or ADMIN (only admins may change it)
    - phone: Optional phone number with validation
    - city: Optional city
    - photo: Optional photo URL
    - created_at: Account creation timestamp
    - updated_at: Last update timestamp
    """

    class Role(models.TextChoices):
        CUSTOMER = 'CUSTOMER', _('Customer')
        VENDOR = 'VENDOR', _('Vendor')
        ADMIN = 'ADMIN', _('Admin')

    email = models.EmailField(
        _('email address'),
        unique=True,
        blank=False,
        null=False,
        error_messages={
            'unique': _('A user with that email already exists.'),
        },
        help_text=_('Required. Enter a valid email address.')
    )

    name = models.CharField(
        _('name'),
        max_length=100,
        blank=True,
        default='',
        help_text=_('Display name.')
    )

    role = models.CharField(
        _('role'),
        max_length=10,
        choices=Role.choices,
        default=Role.CUSTOMER,
        help_text=_('Marketplace role. Only admins can assign roles.')
    )

    phone = models.CharField(
        _('phone'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_phone_number],
        help_text=_('Optional. Enter phone number in international format.')
    )

    city = models.CharField(
        _('city'),
        max_length=100,
        blank=True,
        default='',
    )

    photo = models.CharField(
        _('photo'),
        max_length=500,
        blank=True,
        default='',
        validators=[validate_image_url],
        help_text=_('Optional. URL of a profile photo.')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['role'], name='core_user_role_1f7c4e_idx'),
            models.Index(fields=['city'], name='core_user_city_8a2d91_idx'),
        ]

    def __str__(self):
        return self.email or self.username

    def is_customer(self):
        return self.role == self.Role.CUSTOMER

    def is_vendor(self):
        return self.role == self.Role.VENDOR

    def is_admin(self):
        return self.role == self.Role.ADMIN

    def save(self, *args, **kwargs):
        """Normalize email to lowercase so lookups stay case-insensitive."""
        if self.email:
            self.email = self.email.lower()
        super().save(*args, **kwargs)


class Category(models.Model):
    """Service category managed by admins."""

    name = models.CharField(
        _('name'),
        max_length=100,
        unique=True,
        error_messages={
            'unique': _('Category name already exists.'),
        },
    )

    icon = models.CharField(_('icon'), max_length=100, blank=True, default='')

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('category')
        verbose_name_plural = _('categories')
        ordering = ['name']

    def __str__(self):
        return self.name

    def clean(self):
        super().clean()
        if not self.name or not self.name.strip():
            raise ValidationError({'name': _('Category name is required.')})


class Service(models.Model):
    """
    Service listed by a vendor.

    Fields:
    - vendor: Foreign key to User offering the service
    - category: Foreign key to Category
    - service_title, description, price, phone, city, image
    - avg_rating: Cached mean of the service's review ratings (0.00 when none)
    - total_reviews: Cached number of reviews
    - created_at / updated_at

    avg_rating and total_reviews are derived from the Review set and are
    only written by core.ratings.
    """

    vendor = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='services',
        help_text=_('Vendor offering this service')
    )

    category = models.ForeignKey(
        Category,
        on_delete=models.CASCADE,
        related_name='services',
    )

    service_title = models.CharField(
        _('service title'),
        max_length=200,
        validators=[MinLengthValidator(3, message=_('Service title must be at least 3 characters.'))],
    )

    description = models.TextField(
        _('description'),
        validators=[MinLengthValidator(10, message=_('Description must be at least 10 characters.'))],
    )

    price = models.DecimalField(
        _('price'),
        max_digits=10,
        decimal_places=2,
        help_text=_('Listed price for the service')
    )

    phone = models.CharField(
        _('phone'),
        max_length=20,
        validators=[validate_phone_number],
    )

    city = models.CharField(
        _('city'),
        max_length=100,
        validators=[MinLengthValidator(2, message=_('City must be at least 2 characters.'))],
    )

    image = models.CharField(
        _('image'),
        max_length=500,
        blank=True,
        default='',
        validators=[validate_image_url],
    )

    avg_rating = models.DecimalField(
        _('average rating'),
        max_digits=3,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text=_('Average rating from 0.00 to 5.00')
    )

    total_reviews = models.PositiveIntegerField(
        _('total reviews'),
        default=0,
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('service')
        verbose_name_plural = _('services')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['vendor'], name='core_servic_vendor__3b9e0a_idx'),
            models.Index(fields=['category'], name='core_servic_categor_5c1f7d_idx'),
            models.Index(fields=['city'], name='core_servic_city_9e4a2b_idx'),
            models.Index(fields=['avg_rating'], name='core_servic_avg_rat_7d6c3e_idx'),
        ]

    def __str__(self):
        return self.service_title

    def clean(self):
        """
        Validate model fields.

        Ensures:
        - Price is greater than 0
        - Rating average stays within 0..5
        """
        super().clean()

        if self.price is not None and self.price <= 0:
            raise ValidationError({
                'price': _('Price must be greater than 0.')
            })

        if self.avg_rating is not None and not (0 <= self.avg_rating <= 5):
            raise ValidationError({
                'avg_rating': _('Average rating must be between 0.00 and 5.00.')
            })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class Negotiation(models.Model):
    """
    Price offer from a customer on a vendor's service.

    Status lifecycle:
    - PENDING -> ACCEPTED (terminal)
    - PENDING -> REJECTED (terminal)
    - PENDING -> deleted (customer cancellation)

    At most one PENDING negotiation may exist per (service, customer).
    """

    class Status(models.TextChoices):
        PENDING = 'PENDING', _('Pending')
        ACCEPTED = 'ACCEPTED', _('Accepted')
        REJECTED = 'REJECTED', _('Rejected')

    VALID_TRANSITIONS = {
        Status.PENDING: [Status.ACCEPTED, Status.REJECTED],
        Status.ACCEPTED: [],
        Status.REJECTED: [],
    }

    service = models.ForeignKey(
        Service,
        on_delete=models.CASCADE,
        related_name='negotiations',
    )

    customer = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='negotiations',
    )

    offer_price = models.DecimalField(
        _('offer price'),
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'), message=_('Offer price must be positive.'))],
    )

    status = models.CharField(
        _('status'),
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('negotiation')
        verbose_name_plural = _('negotiations')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['service'], name='core_negoti_service_2a8f1c_idx'),
            models.Index(fields=['customer'], name='core_negoti_custome_6b3d9e_idx'),
            models.Index(fields=['status'], name='core_negoti_status_4e7a2f_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['service', 'customer'],
                condition=models.Q(status='PENDING'),
                name='unique_pending_negotiation_per_customer'
            )
        ]

    def __str__(self):
        return f"Negotiation #{self.pk} on {self.service_id} by {self.customer_id} ({self.status})"

    def is_pending(self):
        return self.status == self.Status.PENDING

    def can_transition_to(self, new_status):
        """
        Check whether the negotiation may move to new_status.

        Returns:
            bool: True if the transition is allowed from the current status
        """
        return new_status in self.VALID_TRANSITIONS.get(self.status, [])


class Review(models.Model):
    """
    A customer's 1-5 rating of a service with an optional comment.

    One review per (service, customer). Saving or deleting a review
    refreshes the service's cached rating (see core.signals).
    """

    service = models.ForeignKey(
        Service,
        on_delete=models.CASCADE,
        related_name='reviews',
    )

    customer = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='reviews',
    )

    rating = models.PositiveSmallIntegerField(
        _('rating'),
        validators=[
            MinValueValidator(1, message=_('Rating must be between 1 and 5.')),
            MaxValueValidator(5, message=_('Rating must be between 1 and 5.'))
        ],
    )

    comment = models.TextField(
        _('comment'),
        max_length=500,
        blank=True,
        null=True,
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('review')
        verbose_name_plural = _('reviews')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['service'], name='core_review_service_8c2e4a_idx'),
            models.Index(fields=['customer'], name='core_review_custome_1d9f6b_idx'),
            models.Index(fields=['rating'], name='core_review_rating_5a7c3d_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['service', 'customer'],
                name='unique_review_per_customer'
            ),
            models.CheckConstraint(
                condition=models.Q(rating__gte=1) & models.Q(rating__lte=5),
                name='review_rating_range'
            ),
        ]

    def __str__(self):
        return f"Review by {self.customer_id} for {self.service_id} - {self.rating}★"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_rating = instance.__dict__.get('rating')
        return instance

    def rating_changed(self):
        """Return True if rating differs from the value last loaded or saved."""
        return getattr(self, '_loaded_rating', None) != self.rating

    def save(self, *args, **kwargs):
        """
        Save without full_clean() so the database uniqueness constraint
        raises IntegrityError for concurrent duplicates.
        """
        super().save(*args, **kwargs)
        self._loaded_rating = self.rating
