from rest_framework import permissions


class IsClient(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'client')


class IsProfessional(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'professional')


class IsProjectParty(permissions.BasePermission):
    """Client or professional; the project-level check is done by the store predicate."""
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'client') or hasattr(request.user, 'professional')
