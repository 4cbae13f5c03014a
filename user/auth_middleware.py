from functools import wraps
from src.exceptions import AuthorizationError
from user.jwt_middleware import jwt_required, get_current_user


def require_roles(*roles):
    """Authenticate, then allow only principals holding one of ``roles``."""
    def decorator(f):
        @wraps(f)
        @jwt_required
        def decorated_function(*args, **kwargs):
            current_user = get_current_user()
            if current_user['role'] not in roles:
                raise AuthorizationError(f"Access denied. Required role: {', '.join(roles)}")
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def has_role(principal, *roles):
    return bool(principal) and principal.get('role') in roles
