"""
Authentication Guard

The hosted identity provider is external; the application only receives
the resulting UserIdentity. Every write path calls require_user() first so
that an anonymous write fails before touching storage.
"""

from typing import Optional

from expense_tracker.models.finance import UserIdentity


class AuthenticationError(Exception):
    """A write was attempted without a signed-in user."""

    def __init__(self, operation: str = "operation"):
        self.operation = operation
        super().__init__(f"User must be authenticated to perform {operation}")


def require_user(user: Optional[UserIdentity], operation: str = "operation") -> UserIdentity:
    """Return the user, or raise AuthenticationError when there is none."""
    if user is None or not user.uid:
        raise AuthenticationError(operation)
    return user
