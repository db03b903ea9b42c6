"""
Actor and scope context for scopegate.

The actor is the authenticated console operator. The selected scope is the
organization currently being viewed, which admins may switch while dealer
admins are pinned to their own organization.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from scopegate.logging import get_logger

logger = get_logger(__name__)


class Role(str, Enum):
    """Console operator roles."""

    ADMIN = "admin"
    DEALER_ADMIN = "dealer_admin"


@dataclass(frozen=True)
class ProfileColumns:
    """
    Column names used to read an admin profile row.

    Resolved once when the console is configured, so that profile mapping
    never has to guess between alternative column names at runtime.
    """

    user_id: str = "user_id"
    organization_id: str = "organization_id"
    branch_id: str = "branch_id"
    role: str = "role"
    name: str = "name"
    login_id: str = "login_id"
    active: str = "active"
    must_change_password: str = "must_change_password"


@dataclass(frozen=True)
class Actor:
    """
    The authenticated operator that scoping decisions are made for.

    The role is fixed for the session once resolved from the profile record.
    """

    role: Role
    organization_id: str | None = None
    branch_id: str | None = None
    user_id: str | None = None
    name: str = ""
    login_id: str = ""
    active: bool = True
    must_change_password: bool = False

    @property
    def is_dealer_admin(self) -> bool:
        return self.role == Role.DEALER_ADMIN

    @classmethod
    def from_profile_row(
        cls,
        row: Mapping[str, Any],
        columns: ProfileColumns | None = None,
    ) -> "Actor":
        """
        Build an actor from an admin profile row.

        Unknown roles map to ``dealer_admin``, the narrower of the two.

        Args:
            row: The profile record as returned by the backing store
            columns: Column names to read (defaults to the standard layout)
        """
        columns = columns or ProfileColumns()

        def text(column: str) -> str | None:
            value = row.get(column)
            return value if isinstance(value, str) and value else None

        def flag(column: str, default: bool) -> bool:
            value = row.get(column)
            return value if isinstance(value, bool) else default

        raw_role = row.get(columns.role)
        try:
            role = Role(raw_role)
        except ValueError:
            logger.debug("Unknown profile role, using dealer_admin", raw_role=str(raw_role))
            role = Role.DEALER_ADMIN

        user_id = text(columns.user_id)
        login_id = text(columns.login_id) or user_id or ""
        name = text(columns.name) or login_id

        return cls(
            role=role,
            organization_id=text(columns.organization_id),
            branch_id=text(columns.branch_id),
            user_id=user_id,
            name=name,
            login_id=login_id,
            active=flag(columns.active, True),
            must_change_password=flag(columns.must_change_password, False),
        )


@dataclass(frozen=True)
class SelectedScope:
    """The organization currently being viewed."""

    organization_id: str | None = None


class SelectionStore(Protocol):
    """Remembers an admin's last selected organization."""

    def load(self, user_id: str) -> str | None: ...

    def save(self, user_id: str, organization_id: str) -> None: ...


class InMemorySelectionStore:
    """Process-local SelectionStore."""

    def __init__(self) -> None:
        self._selections: dict[str, str] = {}

    def load(self, user_id: str) -> str | None:
        return self._selections.get(user_id)

    def save(self, user_id: str, organization_id: str) -> None:
        self._selections[user_id] = organization_id


class ScopeState:
    """
    Session scope provider.

    Holds the actor together with the selected organization and enforces
    that a dealer admin can never view another organization. The gateway
    reads ``actor`` and ``selected`` on every call and never mutates them.

    Example:
        state = ScopeState(Actor(role=Role.ADMIN, organization_id="org-1"))
        state.select_organization("org-2")
        state.effective_organization_id  # "org-2"
    """

    def __init__(
        self,
        actor: Actor,
        *,
        selection_store: SelectionStore | None = None,
    ) -> None:
        self._selection_store = selection_store
        self._actor = actor
        self._selected: str | None = None
        self._apply_actor(actor)

    @property
    def actor(self) -> Actor:
        return self._actor

    @property
    def selected(self) -> SelectedScope:
        return SelectedScope(organization_id=self._selected)

    @property
    def effective_organization_id(self) -> str | None:
        """The selected organization, falling back to the actor's own."""
        if self._selected is not None:
            return self._selected
        return self._actor.organization_id

    def set_actor(self, actor: Actor) -> None:
        """Replace the actor (e.g. after a profile refresh)."""
        if actor.user_id != self._actor.user_id:
            self._selected = None
        self._actor = actor
        self._apply_actor(actor)

    def select_organization(self, organization_id: str | None) -> SelectedScope:
        """
        Switch the viewed organization.

        Dealer admins are coerced back to their own organization; the
        returned scope shows what actually took effect.
        """
        if self._actor.is_dealer_admin:
            if organization_id != self._actor.organization_id:
                logger.debug(
                    "Ignoring organization switch for dealer admin",
                    requested=organization_id,
                    organization_id=self._actor.organization_id,
                )
            self._selected = self._actor.organization_id
            return self.selected

        self._selected = organization_id
        if (
            organization_id
            and self._selection_store is not None
            and self._actor.user_id
        ):
            self._selection_store.save(self._actor.user_id, organization_id)
        return self.selected

    def _apply_actor(self, actor: Actor) -> None:
        if actor.is_dealer_admin:
            self._selected = actor.organization_id
            return

        if self._selected is not None:
            return

        stored = None
        if self._selection_store is not None and actor.user_id:
            stored = self._selection_store.load(actor.user_id)
        self._selected = stored or actor.organization_id
