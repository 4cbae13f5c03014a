from .user import User, ROLES, MANAGEMENT_ROLES

__all__ = ['User', 'ROLES', 'MANAGEMENT_ROLES']
