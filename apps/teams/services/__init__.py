"""
Teams app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and concurrency protection.
"""

from .exceptions import (
    TeamsServiceError,
    TeamNotFoundError,
    InvalidJoinTokenError,
    MembershipClosedError,
    InvalidScheduleError,
    InsufficientPermissionsError,
)

from .team_management import (
    build_schedule,
    create_team,
    get_team_for_manager,
    update_team,
    rotate_join_token,
)

from .joining import (
    get_team_by_join_token,
    join_team,
)


__all__ = [
    # Exceptions
    'TeamsServiceError',
    'TeamNotFoundError',
    'InvalidJoinTokenError',
    'MembershipClosedError',
    'InvalidScheduleError',
    'InsufficientPermissionsError',

    # Team management
    'build_schedule',
    'create_team',
    'get_team_for_manager',
    'update_team',
    'rotate_join_token',

    # Joining
    'get_team_by_join_token',
    'join_team',
]
