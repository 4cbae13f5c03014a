from functools import wraps
from flask import request, g
from src.exceptions import AuthenticationError
from src.extensions import db
from user.jwt_utils import decode_access_token, get_token_from_header
from user.user import User


def jwt_required(f):
    """JWT authentication decorator for access tokens"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = get_token_from_header(request)
        if not token:
            raise AuthenticationError("Access token missing")

        payload = decode_access_token(token)
        if not payload:
            raise AuthenticationError("Invalid or expired access token")

        user = db.session.get(User, payload['user_id'])
        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        # Principal for this request, passed explicitly to services
        g.current_user = {
            'user_id': user.id,
            'name': user.name,
            'role': user.role,
            'token_id': payload.get('jti')
        }

        return f(*args, **kwargs)
    return decorated_function


def get_current_user():
    """Get current user from JWT token"""
    return getattr(g, 'current_user', None)
