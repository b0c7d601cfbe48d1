"""
Authorization Guard

Pure capability checks: (identity, action, resource owner) -> allow/deny.

The guard keeps no state and never touches the database. Callers resolve
the identity (SessionAuthenticator) and the resource owner id first, then
ask the guard.

Capability Table:
=================
    Action          reader              admin
    review:update   owner only          owner only
    review:delete   owner only          any review
    review:like     any review          any review
    book:create     -                   yes
    book:update     -                   yes
    book:delete     -                   yes

Admins may delete other users' reviews (moderation) but are not granted
edit rights on them.
"""

import logging
from enum import Enum

from bibliobuzz.exceptions import ForbiddenError, UnauthenticatedError
from bibliobuzz.models.user import Role, User

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """Mutations that require a capability check."""

    REVIEW_UPDATE = "review:update"
    REVIEW_DELETE = "review:delete"
    REVIEW_LIKE = "review:like"
    BOOK_CREATE = "book:create"
    BOOK_UPDATE = "book:update"
    BOOK_DELETE = "book:delete"


class Scope(str, Enum):
    """How far a capability reaches."""

    OWN = "own"  # only resources the caller owns
    ANY = "any"  # every resource


CAPABILITIES: dict[Role, dict[Action, Scope]] = {
    Role.READER: {
        Action.REVIEW_UPDATE: Scope.OWN,
        Action.REVIEW_DELETE: Scope.OWN,
        Action.REVIEW_LIKE: Scope.ANY,
    },
    Role.ADMIN: {
        Action.REVIEW_UPDATE: Scope.OWN,
        Action.REVIEW_DELETE: Scope.ANY,
        Action.REVIEW_LIKE: Scope.ANY,
        Action.BOOK_CREATE: Scope.ANY,
        Action.BOOK_UPDATE: Scope.ANY,
        Action.BOOK_DELETE: Scope.ANY,
    },
}

DENIAL_MESSAGES: dict[Action, str] = {
    Action.REVIEW_UPDATE: "You can only update your own reviews",
    Action.REVIEW_DELETE: "You can only delete your own reviews",
    Action.BOOK_CREATE: "Not authorized as an admin",
    Action.BOOK_UPDATE: "Not authorized as an admin",
    Action.BOOK_DELETE: "Not authorized as an admin",
}


def role_of(user: User) -> Role:
    try:
        return Role(user.role)
    except ValueError:
        # Unknown stored roles get no capabilities beyond a reader's.
        return Role.READER


def is_allowed(
    identity: User | None,
    action: Action,
    owner_id: int | None = None,
) -> bool:
    """
    Decide whether identity may perform action on a resource.

    Args:
        identity: The resolved caller, None for anonymous
        action: Requested mutation
        owner_id: Owner of the target resource, None if it has no owner

    Returns:
        True if allowed
    """
    if identity is None:
        return False

    scope = CAPABILITIES[role_of(identity)].get(action)
    if scope is None:
        return False
    if scope is Scope.ANY:
        return True
    return owner_id is not None and owner_id == identity.id


def check(
    identity: User | None,
    action: Action,
    owner_id: int | None = None,
) -> None:
    """
    Enforce a capability.

    Raises:
        UnauthenticatedError: identity is anonymous
        ForbiddenError: identity lacks the capability
    """
    if identity is None:
        raise UnauthenticatedError()

    if not is_allowed(identity, action, owner_id):
        logger.warning(
            f"Denied {action.value} for user {identity.id} "
            f"(role={identity.role}, owner={owner_id})"
        )
        raise ForbiddenError(DENIAL_MESSAGES.get(action))
