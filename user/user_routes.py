from datetime import datetime
from flask import Blueprint, request
from sqlalchemy import func
from src.extensions import db
from src.exceptions import AuthenticationError, DuplicateEntryError, NotFoundError, ValidationError
from src.filters import ListFilter, ilike_any
from src.logger import get_logger
from src.responses import success, paginate
from src.validators import Validator
from user.user import User, ROLES
from user.jwt_utils import generate_access_token
from user.jwt_middleware import jwt_required, get_current_user
from user.auth_middleware import require_roles

logger = get_logger("users")

auth_bp = Blueprint('auth', __name__)
bp = Blueprint('users', __name__)


class UserFilter(ListFilter):
    SORT_FIELDS = ("created_at", "name", "email", "role")


def _validate_user(data, partial=False):
    v = Validator(data, partial=partial)
    v.string("name", required=True, max_length=50)
    v.email("email", required=True)
    v.string("password", required=not partial, min_length=6)
    v.string("role", choices=ROLES)
    return v.check()


def _email_taken(email, exclude_id=None):
    q = User.query.filter(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return db.session.query(q.exists()).scalar()


# -------------------- AUTH --------------------
@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json() or {}
    v = Validator(data)
    email = v.email('email', required=True)
    password = v.string('password', required=True)
    v.check()

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        logger.info("Login failed for %s", email)
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    user.last_login = datetime.utcnow()
    db.session.commit()

    return success({
        'token': generate_access_token(user),
        'user': user.to_dict(),
    }, 'Login successful')


@auth_bp.route('/change-password', methods=['POST'])
@jwt_required
def change_password():
    data = request.get_json() or {}
    v = Validator(data)
    old_password = v.string('old_password', required=True)
    new_password = v.string('new_password', required=True, min_length=6)
    v.check()

    user = db.session.get(User, get_current_user()['user_id'])
    if not user.check_password(old_password):
        raise ValidationError(["old_password is incorrect"])
    user.set_password(new_password)
    db.session.commit()
    logger.info("Password changed for user %s", user.id)
    return success(None, 'Password changed successfully')


# -------------------- USERS --------------------
@bp.route('/register', methods=['POST'])
@require_roles('admin')
def register():
    data = request.get_json() or {}
    cleaned = _validate_user(data)
    if _email_taken(cleaned['email']):
        raise DuplicateEntryError('User already exists with this email', field='email')

    user = User(name=cleaned['name'], email=cleaned['email'], role=cleaned.get('role') or 'employee')
    user.set_password(cleaned['password'])
    db.session.add(user)
    db.session.commit()
    logger.info("User %s registered with role %s", user.id, user.role)
    return success({'user': user.to_dict()}, 'User registered successfully', 201)


@bp.route('/profile', methods=['GET'])
@jwt_required
def get_profile():
    user = db.session.get(User, get_current_user()['user_id'])
    return success({'user': user.to_dict()}, 'Profile retrieved successfully')


@bp.route('/', methods=['GET'])
@require_roles('admin')
def get_all_users():
    f = UserFilter.from_args(request.args)
    q = User.query
    if f.search:
        q = q.filter(ilike_any(f.search, User.name, User.email, User.role))
    q = q.order_by(f.order_clause(User))
    users, pagination = paginate(q, f.page, f.limit)
    return success({
        'users': [u.to_dict() for u in users],
        'pagination': pagination,
    }, 'Users retrieved successfully')


@bp.route('/<int:user_id>', methods=['PUT'])
@require_roles('admin')
def update_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError('User not found')

    data = request.get_json() or {}
    cleaned = _validate_user(data, partial=True)
    if 'email' in cleaned and cleaned['email'] != user.email and _email_taken(cleaned['email'], user.id):
        raise DuplicateEntryError('User with this email already exists', field='email')

    for field in ('name', 'email', 'role'):
        if cleaned.get(field) is not None:
            setattr(user, field, cleaned[field])
    if cleaned.get('password'):
        user.set_password(cleaned['password'])
    db.session.commit()
    return success({'user': user.to_dict()}, 'User updated successfully')


@bp.route('/<int:user_id>', methods=['DELETE'])
@require_roles('admin')
def delete_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError('User not found')
    if user.id == get_current_user()['user_id']:
        raise ValidationError(['You cannot delete your own account'])

    # Accounts are removed outright, unlike business records
    db.session.delete(user)
    db.session.commit()
    logger.info("User %s deleted", user_id)
    return success({'id': user_id}, 'User deleted successfully')


@bp.route('/<int:user_id>/status', methods=['PATCH'])
@require_roles('admin')
def toggle_user_status(user_id):
    data = request.get_json() or {}
    is_active = data.get('is_active')
    if not isinstance(is_active, bool):
        raise ValidationError(['is_active field must be a boolean value'])

    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError('User not found')
    if user.id == get_current_user()['user_id'] and not is_active:
        raise ValidationError(['You cannot deactivate your own account'])

    user.is_active = is_active
    db.session.commit()
    return success({'user': user.to_dict()}, f"User {'activated' if is_active else 'deactivated'} successfully")
