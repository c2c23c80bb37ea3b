"""
Role-based capability checks.

Services never inspect roles directly. They call require_capability with an
injected checker (has_capability by default), so callers and tests can swap
the predicate without touching lifecycle code.
"""

import enum
from typing import Callable, Dict, FrozenSet, Optional
from app.core.exceptions import PermissionDeniedError
from app.models.user import User, UserRole


class Capability(str, enum.Enum):
    VIEW = "view"
    MANAGE_INTERVIEWS = "manage_interviews"
    SUBMIT_FEEDBACK = "submit_feedback"
    MAKE_DECISIONS = "make_decisions"
    ARCHIVE_CANDIDATES = "archive_candidates"
    REACTIVATE_CANDIDATES = "reactivate_candidates"
    DELETE_CANDIDATES = "delete_candidates"


_LIFECYCLE = frozenset({
    Capability.VIEW,
    Capability.MANAGE_INTERVIEWS,
    Capability.SUBMIT_FEEDBACK,
    Capability.MAKE_DECISIONS,
})

ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.SUPER_ADMIN: frozenset(Capability),
    UserRole.RECRUITER: _LIFECYCLE | {Capability.ARCHIVE_CANDIDATES, Capability.REACTIVATE_CANDIDATES},
    UserRole.REGIONAL_MANAGER: _LIFECYCLE,
    UserRole.BRANCH_MANAGER: _LIFECYCLE,
    UserRole.VIEWER: frozenset({Capability.VIEW}),
}

CapabilityChecker = Callable[[Optional[User], Capability], bool]


def has_capability(user: Optional[User], capability: Capability) -> bool:
    """
    Check whether a user's role grants a capability.

    Args:
        user: Acting user (None is never authorised)
        capability: Capability required by the action

    Returns:
        bool: True if the action is allowed
    """
    if user is None or not user.is_active:
        return False
    return capability in ROLE_CAPABILITIES.get(user.role, frozenset())


def require_capability(
    user: Optional[User],
    capability: Capability,
    checker: CapabilityChecker = has_capability,
) -> None:
    """
    Raise PermissionDeniedError if the checker refuses the capability.

    Raises:
        PermissionDeniedError: 403 when the user lacks the capability
    """
    if not checker(user, capability):
        role = user.role.value if user is not None else "anonymous"
        raise PermissionDeniedError(
            f"Role '{role}' is not allowed to {capability.value.replace('_', ' ')}"
        )
