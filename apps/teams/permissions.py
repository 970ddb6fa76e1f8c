from rest_framework import permissions


class IsTeamManager(permissions.BasePermission):
    """
    Permission: User must manage the team.
    """

    message = 'Only the team manager can do that.'

    def has_object_permission(self, request, view, obj):
        # obj is a Team instance
        return obj.is_manager(request.user)
