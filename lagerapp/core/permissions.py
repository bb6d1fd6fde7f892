"""Role checks shared by the app views"""
from rest_framework.permissions import BasePermission


def is_admin(user):
    """Superusers, staff and profiles with the admin role"""
    if not user or not user.is_authenticated:
        return False
    return user.is_superuser or user.is_staff or getattr(user, 'role', None) == 'admin'


def is_workwear_admin(user):
    """Chef and Besteller manage workwear orders, budgets and the catalog"""
    if is_admin(user):
        return True
    return getattr(user, 'workwear_role', None) in ('chef', 'besteller')


class IsAppAdmin(BasePermission):
    message = 'Nur Administratoren haben Zugriff auf diese Funktion.'

    def has_permission(self, request, view):
        return is_admin(request.user)
