from rest_framework import permissions


class IsOfferManagerOrReadOnly(permissions.BasePermission):
    """
    Permission: Only the owning business (or staff) can change an offer
    or see who redeemed it.
    """

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS and view.action not in ('redemptions', 'qr_code'):
            return True

        return obj.business.is_managed_by(request.user)
