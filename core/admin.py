"""
Django admin configuration for marketplace models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import Category, Negotiation, Review, Service, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for the custom User model.

    Extends Django's UserAdmin with marketplace profile fields and role.
    """

    list_display = ['email', 'name', 'role', 'city', 'is_staff', 'is_active', 'created_at']

    list_filter = ['role', 'is_staff', 'is_superuser', 'is_active', 'created_at']

    search_fields = ['email', 'username', 'name', 'city']

    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('username', 'password')
        }),
        (_('Profile'), {
            'fields': ('email', 'name', 'phone', 'city', 'photo')
        }),
        (_('Marketplace Role'), {
            'fields': ('role',)
        }),
        (_('Permissions'), {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions',
            ),
            'classes': ('collapse',),
        }),
        (_('Important Dates'), {
            'fields': ('last_login', 'date_joined', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'email', 'name', 'password1', 'password2', 'role'),
        }),
    )

    readonly_fields = ['created_at', 'updated_at', 'last_login', 'date_joined']

    list_per_page = 25

    def get_readonly_fields(self, request, obj=None):
        if obj:
            return self.readonly_fields
        return []


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'icon', 'created_at']
    search_fields = ['name']
    ordering = ['name']


class NegotiationInline(admin.TabularInline):
    model = Negotiation
    extra = 0
    fields = ['customer', 'offer_price', 'status', 'created_at']
    readonly_fields = ['created_at']


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    """
    Admin interface for Service.

    avg_rating and total_reviews are derived from reviews and read-only here;
    use the recalculate_ratings command to repair them.
    """

    list_display = ['service_title', 'vendor', 'category', 'city', 'price', 'avg_rating', 'total_reviews']

    list_filter = ['category', 'city', 'created_at']

    search_fields = ['service_title', 'description', 'vendor__email', 'vendor__name']

    readonly_fields = ['avg_rating', 'total_reviews', 'created_at', 'updated_at']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25

    inlines = [NegotiationInline]

    fieldsets = (
        (None, {
            'fields': ('vendor', 'category', 'service_title', 'description')
        }),
        (_('Pricing & Contact'), {
            'fields': ('price', 'phone', 'city', 'image')
        }),
        (_('Ratings'), {
            'fields': ('avg_rating', 'total_reviews')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


@admin.register(Negotiation)
class NegotiationAdmin(admin.ModelAdmin):
    list_display = ['id', 'service', 'customer', 'offer_price', 'status', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['service__service_title', 'customer__email']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['-created_at']
    list_per_page = 25


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    """Admin interface for Review model."""

    list_display = ['id', 'service', 'customer', 'rating', 'created_at']

    list_filter = ['rating', 'created_at']

    search_fields = ['service__service_title', 'customer__email', 'comment']

    readonly_fields = ['created_at', 'updated_at']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25
