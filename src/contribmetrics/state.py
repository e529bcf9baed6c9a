"""Application state: the session and the data loaded for it.

State objects are immutable. Transitions take a state and return a new one,
so callers pass the current state around explicitly.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from .metrics import aggregate_donors
from .models import (
    Budget,
    Campaign,
    Contribution,
    Donor,
    Expense,
    Festival,
    Sponsor,
    Vendor,
)

logger = logging.getLogger(__name__)

ADMIN_PERMISSIONS = ("page:user-management:view", "action:users:manage")

COLLECTION_MODELS = {
    "contributions": Contribution,
    "campaigns": Campaign,
    "sponsors": Sponsor,
    "vendors": Vendor,
    "expenses": Expense,
    "budgets": Budget,
    "festivals": Festival,
}


@dataclass(frozen=True)
class AuthUser:
    id: Any
    email: str
    permissions: tuple = ()

    @classmethod
    def from_dict(cls, data: dict) -> Optional["AuthUser"]:
        """Parse a user record, or None if it is missing id, email or permissions."""
        permissions = data.get("permissions")
        if not data.get("id") or not data.get("email") or not isinstance(permissions, list):
            logger.warning("Malformed user record, ignoring it")
            return None
        return cls(id=data["id"], email=data["email"], permissions=tuple(permissions))


def has_permission(user: Optional[AuthUser], permission: str) -> bool:
    """Check a permission. Users holding every admin permission may do anything."""
    if user is None:
        return False
    if all(p in user.permissions for p in ADMIN_PERMISSIONS):
        return True
    return permission in user.permissions


@dataclass(frozen=True)
class DashboardData:
    """Every collection fetched from the backend, as tuples of models."""
    contributions: tuple = ()
    campaigns: tuple = ()
    sponsors: tuple = ()
    vendors: tuple = ()
    expenses: tuple = ()
    budgets: tuple = ()
    festivals: tuple = ()

    @classmethod
    def from_payload(cls, payload: Mapping) -> "DashboardData":
        """Build from {collection name: list of JSON records}.

        Missing or non-list collections become empty; non-dict records are dropped.
        """
        collections = {}
        for name, model in COLLECTION_MODELS.items():
            records = payload.get(name) or []
            if not isinstance(records, list):
                logger.warning(f"Expected a list for {name}, got {type(records).__name__}")
                records = []
            collections[name] = tuple(
                model.from_dict(record) for record in records if isinstance(record, Mapping)
            )
        return cls(**collections)

    @property
    def donors(self) -> list[Donor]:
        return aggregate_donors(self.contributions)

    @property
    def festival_names(self) -> dict:
        return {f.id: f.name for f in self.festivals}


@dataclass(frozen=True)
class AppState:
    token: Optional[str] = None
    user: Optional[AuthUser] = None
    data: DashboardData = field(default_factory=DashboardData)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def has_permission(self, permission: str) -> bool:
        return has_permission(self.user, permission)


def login(state: AppState, token: Optional[str], user: Optional[AuthUser] = None) -> AppState:
    return replace(state, token=token, user=user)


def logout(state: AppState) -> AppState:
    """Drop the session along with everything loaded under it."""
    return AppState()


def data_loaded(state: AppState, data: DashboardData) -> AppState:
    return replace(state, data=data)


TRANSITIONS = {
    "login": login,
    "logout": logout,
    "data_loaded": data_loaded,
}


def reduce(state: AppState, action: str, **payload) -> AppState:
    """Apply a named transition.

    Raises:
        ValueError: If the action is unknown
    """
    try:
        transition = TRANSITIONS[action]
    except KeyError:
        raise ValueError(f"Unknown action: {action}")
    return transition(state, **payload)
