from rest_framework import permissions


class IsVenueManagerOrReadOnly(permissions.BasePermission):
    """
    Permission: Only the owning business (or staff) can change a venue.
    Anyone can read venues.
    """

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True

        return obj.business.is_managed_by(request.user)
