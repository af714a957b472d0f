from rest_framework import permissions


class IsCustomer(permissions.BasePermission):
    """
    Permission to only allow customer accounts to manage carts
    """
    message = 'Only customer accounts can use the cart.'

    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and getattr(request.user, 'is_customer', False)
        )
