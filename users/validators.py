import re

from config import errors

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 32
PASSWORD_MIN_LENGTH = 6
USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_.]+$')


def validate_username(username):
    """
    Validate username format and length.

    Args:
        username (str): The username to validate

    Returns:
        tuple: (is_valid: bool, error_message: str or None)
    """
    if not username:
        return False, "Username is required"

    username = username.strip()

    if len(username) < USERNAME_MIN_LENGTH:
        return False, f"Username must be at least {USERNAME_MIN_LENGTH} characters"

    if len(username) > USERNAME_MAX_LENGTH:
        return False, f"Username cannot be longer than {USERNAME_MAX_LENGTH} characters"

    if not USERNAME_PATTERN.match(username):
        return False, "Only letters, numbers, dots and underscores are allowed"

    return True, None


def require_username(username):
    """Return the stripped username or raise ValidationError."""
    is_valid, error_message = validate_username(username)
    if not is_valid:
        raise errors.ValidationError(error_message, code='INVALID_USERNAME')
    return username.strip()


def require_password(password):
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise errors.ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
            code='INVALID_PASSWORD',
        )
    return password
