import jwt
from datetime import datetime, timedelta
from flask import current_app
import secrets


def generate_access_token(user):
    """Issue a signed access token for the user"""
    now = datetime.utcnow()
    hours = current_app.config["JWT_EXPIRATION_HOURS"]
    payload = {
        'user_id': user.id,
        'name': user.name,
        'role': user.role,
        'token_type': 'access',
        'exp': now + timedelta(hours=hours),
        'iat': now,
        'jti': secrets.token_hex(16)
    }
    token = jwt.encode(payload, current_app.config["JWT_SECRET_KEY"], algorithm=current_app.config["JWT_ALGORITHM"])
    return {
        'access_token': token,
        'expires_in': hours * 60 * 60,
        'token_type': 'Bearer'
    }


def decode_access_token(token):
    """Decode and validate access token"""
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
        )
        if payload.get('token_type') != 'access':
            return None
        return payload
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def get_token_from_header(request):
    """Extract token from Authorization header"""
    auth_header = request.headers.get('Authorization')
    if auth_header and auth_header.startswith('Bearer '):
        return auth_header.split(' ', 1)[1]
    return None
