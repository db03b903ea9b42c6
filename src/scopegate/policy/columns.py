"""
Column availability memo for adaptive scope degradation.

When the store reports that a scoping column does not exist on a resource,
the pair is recorded here and the filter is no longer injected for that
resource. Entries never expire: the schema is assumed stable for the life
of the process, and a new process probes again from scratch.
"""

import threading
from collections.abc import Iterable
from enum import Enum

from scopegate.logging import get_logger

logger = get_logger(__name__)


class ColumnState(str, Enum):
    """What is known about a (resource, column) pair."""

    UNKNOWN = "unknown"
    PRESENT = "present"
    MISSING = "missing"


class ColumnAvailability:
    """
    Thread-safe record of scoping columns known to be missing (or present).

    Owned by a gateway instance or shared between gateways by reference.
    A lost race between two markers of the same pair costs at most one
    redundant retry.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: dict[tuple[str, str], ColumnState] = {}

    def state(self, resource: str, column: str) -> ColumnState:
        with self._lock:
            return self._states.get((resource, column), ColumnState.UNKNOWN)

    def is_column_known_missing(self, resource: str, column: str) -> bool:
        return self.state(resource, column) == ColumnState.MISSING

    def mark_column_missing(self, resource: str, column: str) -> bool:
        """
        Record that ``column`` does not exist on ``resource``.

        Returns True the first time a pair is marked, False afterwards.
        Rows of the resource are no longer filtered on the column, so the
        first mark is logged as a warning.
        """
        key = (resource, column)
        with self._lock:
            if self._states.get(key) == ColumnState.MISSING:
                return False
            self._states[key] = ColumnState.MISSING

        logger.warning(
            "Scoping column missing, filter disabled for resource",
            resource=resource,
            column=column,
        )
        return True

    def mark_column_present(self, resource: str, column: str) -> None:
        """
        Record that ``column`` exists on ``resource``.

        A pair already confirmed missing stays missing.
        """
        key = (resource, column)
        with self._lock:
            if self._states.get(key) != ColumnState.MISSING:
                self._states[key] = ColumnState.PRESENT

    def preseed(
        self,
        resource: str,
        available_columns: Iterable[str],
        expected_columns: Iterable[str],
    ) -> list[str]:
        """
        Seed the memo from an introspected column list.

        Returns the expected columns that turned out to be missing.
        """
        available = set(available_columns)
        missing = []
        for column in expected_columns:
            if column in available:
                self.mark_column_present(resource, column)
            else:
                self.mark_column_missing(resource, column)
                missing.append(column)
        return missing

    def missing_columns(self, resource: str) -> set[str]:
        with self._lock:
            return {
                column
                for (res, column), state in self._states.items()
                if res == resource and state == ColumnState.MISSING
            }

    def clear(self) -> None:
        with self._lock:
            self._states.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for s in self._states.values() if s == ColumnState.MISSING)
