"""
Access policy for the service marketplace.

Two kinds of checks gate every state-changing operation:
- role checks: the actor's role is the required role, or ADMIN
- ownership checks: the actor owns the resource, or is ADMIN

Workflows call AccessPolicy directly; views use the DRF permission
classes below, which delegate to the same predicates.
"""

from rest_framework import permissions

from .exceptions import Forbidden
from .models import Negotiation, User

ROLE_LABELS = {
    User.Role.CUSTOMER: 'Customer',
    User.Role.VENDOR: 'Vendor',
    User.Role.ADMIN: 'Admin',
}


def allowed(actor_role, actor_id, resource_owner_id):
    """Ownership predicate: admins and the resource owner pass."""
    return actor_role == User.Role.ADMIN or actor_id == resource_owner_id


def role_allowed(actor_role, required_role):
    """Role predicate: the required role and admins pass."""
    return actor_role in (required_role, User.Role.ADMIN)


def has_accepted_negotiation(customer_id, service_id):
    """Return True if the customer holds an ACCEPTED negotiation on the service."""
    return Negotiation.objects.filter(
        service_id=service_id,
        customer_id=customer_id,
        status=Negotiation.Status.ACCEPTED
    ).exists()


class AccessPolicy:
    """
    Raise Forbidden when an actor may not perform an operation.

    Usage:
        AccessPolicy.require_role(request.user, User.Role.VENDOR)
        AccessPolicy.require_owner(request.user, service.vendor_id, 'update', 'services')
    """

    @staticmethod
    def require_role(actor, required_role):
        if not role_allowed(actor.role, required_role):
            raise Forbidden(f'Access denied. {ROLE_LABELS[required_role]} role required.')

    @staticmethod
    def require_admin(actor):
        if actor.role != User.Role.ADMIN:
            raise Forbidden('Access denied. Admin role required.')

    @staticmethod
    def require_owner(actor, owner_id, action, resource):
        if not allowed(actor.role, actor.id, owner_id):
            raise Forbidden(f'Access denied. You can only {action} your own {resource}.')


class RolePermission(permissions.BasePermission):
    """
    Permission class allowing authenticated users whose role is
    required_role, or ADMIN.
    """

    required_role = None

    @property
    def message(self):
        return f'Access denied. {ROLE_LABELS[self.required_role]} role required.'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return role_allowed(request.user.role, self.required_role)


class IsAdmin(RolePermission):
    required_role = User.Role.ADMIN


class IsVendorOrAdmin(RolePermission):
    required_role = User.Role.VENDOR


class IsCustomerOrAdmin(RolePermission):
    required_role = User.Role.CUSTOMER


class ReadOnlyOrAdmin(permissions.BasePermission):
    """Anyone may read; only admins may write."""

    message = 'Access denied. Admin role required.'

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(
            request.user
            and request.user.is_authenticated
            and request.user.role == User.Role.ADMIN
        )
