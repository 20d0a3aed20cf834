# apps/users/services.py


def display_name(user):
    """Full name, else username, else email."""
    if user is None or not getattr(user, 'is_authenticated', False):
        return ''
    full_name = user.get_full_name().strip()
    return full_name or user.get_username() or user.email or ''
