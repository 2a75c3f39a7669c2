"""
Custom validators shared by marketplace models and serializers.

Blank values pass every validator here; required-ness is decided by the
field, not the validator.
"""

import re
from django.core.exceptions import ValidationError
from django.core.validators import URLValidator

PHONE_ALLOWED = re.compile(r'^[0-9\s()+-]+$')
PHONE_MIN_DIGITS = 10

_image_url_validator = URLValidator(
    schemes=['http', 'https'],
    message='Image must be a valid URL.',
    code='invalid_image_url'
)


def validate_phone_number(value):
    """
    Check a contact number for a user profile or a service listing.

    Digits may be grouped with spaces, dashes or parentheses and prefixed
    with a country code, e.g. "+1 (555) 123-4567" or "020 7946 0958".
    At least ten digits are required and a run of one repeated digit
    ("0000000000") is refused.

    Raises:
        ValidationError: code 'phone_chars', 'phone_length' or 'phone_repeated'
    """
    if not value:
        return

    if not PHONE_ALLOWED.match(value):
        raise ValidationError(
            'Phone number may only contain digits, spaces, "+", "-", "(" and ")".',
            code='phone_chars'
        )

    digits = ''.join(ch for ch in value if ch.isdigit())

    if len(digits) < PHONE_MIN_DIGITS:
        raise ValidationError(
            f'Phone number must have at least {PHONE_MIN_DIGITS} digits.',
            code='phone_length'
        )

    if digits == digits[0] * len(digits):
        raise ValidationError(
            'Phone number looks like a placeholder.',
            code='phone_repeated'
        )


def validate_image_url(value):
    """Accept blank or an absolute http(s) URL (service images, profile photos)."""
    if value:
        _image_url_validator(value)
