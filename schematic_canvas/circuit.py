"""Circuit aggregate: ordered elements plus connectivity bookkeeping."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set, Union

from PySide6.QtCore import QObject, Signal

from .elements import Element, ElementRegistry
from .snapshot import Snapshot

logger = logging.getLogger(__name__)


class Circuit(QObject):
    """Owns the element list; every mutation is announced through ``updated``.

    ``updated`` carries a dict with at least a ``type`` key, e.g.
    ``{"type": "deleteElement", "elementId": "R1"}``.
    """

    updated = Signal(object)

    def __init__(self, registry: ElementRegistry, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.registry = registry
        self.elements: List[Element] = []
        self.connections: Dict[str, Set[str]] = {}

    # ------------------------------------------------------------------
    # Element bookkeeping
    def get_element(self, element_id: Optional[str]) -> Optional[Element]:
        if element_id is None:
            return None
        for element in self.elements:
            if element.id == element_id:
                return element
        return None

    def has_element(self, element: Union[Element, str, None]) -> bool:
        if element is None:
            return False
        if isinstance(element, Element):
            return any(candidate is element for candidate in self.elements)
        return self.get_element(element) is not None

    def ids(self) -> List[str]:
        return [element.id for element in self.elements]

    def add_element(self, element: Element, notify: bool = True, index: Optional[int] = None) -> Element:
        if self.get_element(element.id) is not None:
            raise ValueError(f"duplicate element id {element.id!r}")
        if index is None:
            self.elements.append(element)
        else:
            self.elements.insert(index, element)
        self.connections.setdefault(element.id, set())
        if notify:
            self.notify("addElement", element=element)
        return element

    def delete_element(self, element_id: str, notify: bool = True) -> Optional[Element]:
        element = self.get_element(element_id)
        if element is None:
            logger.debug("delete_element: %s is not in the circuit", element_id)
            return None
        self.elements.remove(element)
        self.connections.pop(element_id, None)
        for linked in self.connections.values():
            linked.discard(element_id)
        if notify:
            self.notify("deleteElement", elementId=element_id)
        return element

    def clear(self, notify: bool = True) -> None:
        self.elements = []
        self.connections = {}
        if notify:
            self.notify("deleteAll")

    # ------------------------------------------------------------------
    # Connectivity
    def connect(self, first_id: str, second_id: str, notify: bool = True) -> bool:
        if first_id == second_id:
            return False
        if self.get_element(first_id) is None or self.get_element(second_id) is None:
            logger.debug("connect: skipping stale pair %s/%s", first_id, second_id)
            return False
        first = self.connections.setdefault(first_id, set())
        second = self.connections.setdefault(second_id, set())
        if second_id in first and first_id in second:
            return False
        first.add(second_id)
        second.add(first_id)
        if notify:
            self.notify("connectElements", elementIds=[first_id, second_id])
        return True

    def find_connections(self, element_id: str) -> List[Element]:
        linked = self.connections.get(element_id, set())
        return [element for element in self.elements if element.id in linked]

    def rebuild_connections(self) -> None:
        """Derive connectivity from coincident terminals."""
        by_node: Dict[tuple, List[str]] = {}
        for element in self.elements:
            for node in element.get_nodes():
                by_node.setdefault(node.as_tuple(), []).append(element.id)
        self.connections = {element.id: set() for element in self.elements}
        for owners in by_node.values():
            for owner in owners:
                self.connections[owner].update(other for other in owners if other != owner)

    # ------------------------------------------------------------------
    # Snapshots
    def export_state(self) -> Snapshot:
        return Snapshot.from_records(element.to_record() for element in self.elements)

    def import_state(self, state: Union[Snapshot, str], notify: bool = True) -> None:
        """Replace every element with the snapshot content.

        Parsing and rehydration finish before the current state is touched,
        so a bad snapshot leaves the circuit as it was.
        """
        snapshot = state if isinstance(state, Snapshot) else Snapshot.parse(state)
        rebuilt = [self.registry.from_record(record) for record in snapshot.records()]
        self.elements = rebuilt
        self.rebuild_connections()
        if notify:
            self.notify("restoredFromSnapshot")

    def notify(self, event_type: str, **payload) -> None:
        event = {"type": event_type}
        event.update(payload)
        self.updated.emit(event)

    def __iter__(self):
        return iter(list(self.elements))

    def __len__(self) -> int:
        return len(self.elements)

    def extend(self, elements: Iterable[Element]) -> None:
        elements = list(elements)
        for element in elements:
            self.add_element(element, notify=False)
        self.notify("addElements", elementIds=[element.id for element in elements])
