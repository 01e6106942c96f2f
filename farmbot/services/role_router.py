from enum import Enum
from typing import Iterable


class Role(str, Enum):
    PRIMARY_REPORTER = "primary_reporter"
    SELLER = "seller"
    EXPENSE_MANAGER = "expense_manager"


def normalize_user_id(user_id: str) -> str:
    """WhatsApp ids arrive as digits; operators often write them with + or spaces."""
    return "".join(ch for ch in (user_id or "") if ch.isdigit()) or (user_id or "").strip()


class RoleRouter:
    """Fixed id table. Anyone not listed is a primary reporter."""

    def __init__(self, seller_ids: Iterable[str] = (), expense_manager_ids: Iterable[str] = ()):
        self._table: dict[str, Role] = {}
        for user_id in seller_ids:
            self._table[normalize_user_id(user_id)] = Role.SELLER
        for user_id in expense_manager_ids:
            self._table[normalize_user_id(user_id)] = Role.EXPENSE_MANAGER

    def route(self, user_id: str) -> Role:
        return self._table.get(normalize_user_id(user_id), Role.PRIMARY_REPORTER)
