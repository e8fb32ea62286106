# permissions.py
from rest_framework.permissions import BasePermission
from .models import Role, ADMIN_ROLES


class IsWasteGenerator(BasePermission):
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == Role.WASTE_GENERATOR


class IsSuperAdminOrAdmin(BasePermission):
    def has_permission(self, request, view):
        user = request.user
        return (
            user.is_authenticated and
            user.role in ADMIN_ROLES
        )


class IsAuctionCreatorOrAdmin(BasePermission):
    """Object-level: the lot's creator or any admin."""

    def has_permission(self, request, view):
        return request.user.is_authenticated

    def has_object_permission(self, request, view, obj):
        user = request.user
        return user.role in ADMIN_ROLES or obj.creator_id == user.id
