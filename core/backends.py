"""
Email-based authentication backend.
"""

from django.contrib.auth.backends import ModelBackend
from django.contrib.auth import get_user_model

User = get_user_model()


class EmailBackend(ModelBackend):
    """
    Log marketplace users in with their email address.

    Emails are stored lowercased, so the lookup ignores case. The admin
    login form posts the email as `username`; the API passes `email=`.
    """

    def authenticate(self, request, username=None, password=None, email=None, **kwargs):
        identifier = email if email is not None else username
        if not identifier or password is None:
            return None

        user = User._default_manager.filter(email__iexact=identifier.strip()).first()
        if user is None:
            # Hash anyway so unknown emails cost as much as wrong passwords
            User().set_password(password)
            return None

        if not user.check_password(password):
            return None
        return user if self.user_can_authenticate(user) else None
