# carewatch/Services/caregiver_state.py
"""
Caregiver State Store
=====================
Keyed map from caregiver_id to an owned mutable cell holding the derived
tracking state of that caregiver:

- containment: zone_id → ContainmentState
- aggregate: TripAggregate (None until the first accepted sample)

Each cell has its own lock. The registry lock is only held while looking up
or creating a cell, so different caregivers never block each other.

Usage:
    with caregiver_state_store.exclusive("cg-1") as cell:
        new_aggregate = compute(cell.aggregate)
        persist(...)
        cell.commit(new_containment, new_aggregate)
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Tuple

from carewatch.Schemas.tracking_state import ContainmentState, TripAggregate


class CaregiverCell:
    """
    Mutable tracking state of a single caregiver.

    Only mutate through commit() while holding the cell's lock.
    """

    def __init__(self, caregiver_id: str):
        self.caregiver_id = caregiver_id
        self.lock = threading.Lock()
        self.containment: Dict[str, ContainmentState] = {}
        self.aggregate: Optional[TripAggregate] = None
        self.hydrated = False
        """True once a sample was committed; until then the history seed is consulted."""

    def commit(
        self,
        containment: Dict[str, ContainmentState],
        aggregate: Optional[TripAggregate]
    ):
        self.containment = dict(containment)
        self.aggregate = aggregate


class CaregiverStateStore:
    """
    Process-wide registry of caregiver cells.
    """

    def __init__(self):
        self._cells: Dict[str, CaregiverCell] = {}
        self._lock = threading.Lock()

    def cell(self, caregiver_id: str) -> CaregiverCell:
        """Gets or lazily creates the cell of a caregiver."""
        with self._lock:
            cell = self._cells.get(caregiver_id)
            if cell is None:
                cell = CaregiverCell(caregiver_id)
                self._cells[caregiver_id] = cell
            return cell

    @contextmanager
    def exclusive(self, caregiver_id: str) -> Iterator[CaregiverCell]:
        """Holds the caregiver's lock for the duration of the block."""
        cell = self.cell(caregiver_id)
        with cell.lock:
            yield cell

    def snapshot(
        self,
        caregiver_id: str
    ) -> Tuple[Dict[str, ContainmentState], Optional[TripAggregate]]:
        """Consistent copy of a caregiver's state (empty if never seen)."""
        with self._lock:
            cell = self._cells.get(caregiver_id)
        if cell is None:
            return {}, None
        with cell.lock:
            return dict(cell.containment), cell.aggregate
