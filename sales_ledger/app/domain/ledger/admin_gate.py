"""
Admin Gate.

Pure predicate over a caller's group memberships guarding every
privileged ledger operation.
"""

from typing import Iterable, Optional

from sales_ledger.app.core.exceptions import AuthorizationError

DEFAULT_ADMIN_GROUP = "Admin"


def is_admin(groups: Optional[Iterable[str]], admin_group: str = DEFAULT_ADMIN_GROUP) -> bool:
    """Return True iff `admin_group` is one of `groups`. None counts as no groups."""
    if not groups:
        return False
    return admin_group in set(groups)


class AdminGate:
    """Admin check bound to the deployment's admin group name."""

    def __init__(self, admin_group: str = DEFAULT_ADMIN_GROUP):
        self.admin_group = admin_group

    def is_admin(self, groups: Optional[Iterable[str]]) -> bool:
        return is_admin(groups, self.admin_group)

    def enforce(self, groups: Optional[Iterable[str]]) -> None:
        """
        Raise AuthorizationError unless the groups include the admin group.

        Call this before touching the store so a rejected caller causes
        no read or write.
        """
        if not self.is_admin(groups):
            raise AuthorizationError(
                message="Admin access required",
                details={"required_group": self.admin_group}
            )
