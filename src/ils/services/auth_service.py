from __future__ import annotations

from typing import Optional

from ils.domain.errors import AuthorizationError
from ils.domain.models import ROLES, Actor


PERMISSIONS: dict[str, set[str]] = {
    "create_product": {"admin"},
    "edit_product": {"admin"},
    "adjust_stock": {"admin"},
    "delete_product": {"admin"},
    "place_order": {"admin"},
    "edit_order": {"admin"},
    "delete_order": {"admin"},
    "rebuild_revenue": {"admin"},
    "export_report": {"admin", "user"},
}


class AuthService:
    """Server-side gate for mutating entry points.

    Who the actor is comes from the external auth provider; this class only
    decides what that role may do. A ``user`` role is read-only.
    """

    def __init__(self, permissions: dict[str, set[str]] | None = None):
        self.permissions = permissions if permissions is not None else PERMISSIONS

    def can(self, actor: Optional[Actor], action: str) -> bool:
        if actor is None or actor.role not in ROLES:
            return False
        allowed_roles = self.permissions.get(action)
        if not allowed_roles:
            return False
        return actor.role in allowed_roles

    def require_action(self, actor: Optional[Actor], action: str) -> None:
        if actor is None:
            raise AuthorizationError(f"Sign in to perform '{action}'.")
        if not self.can(actor, action):
            raise AuthorizationError(f"Role '{actor.role}' is not allowed to perform '{action}'.")
