"""Selection set, mutually exclusive with the element being placed."""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Union

from .circuit import Circuit
from .elements import Element

ElementRef = Union[Element, str, None]


class SelectionModel:
    def __init__(self, circuit: Circuit):
        self.circuit = circuit
        self._selected: List[Element] = []
        self._placing: Optional[Element] = None

    # ------------------------------------------------------------------
    # Queries
    def get_selected_elements(self) -> List[Element]:
        return [element for element in self._selected if self.circuit.has_element(element)]

    def selected_ids(self) -> List[str]:
        return [element.id for element in self.get_selected_elements()]

    @property
    def selected_element(self) -> Optional[Element]:
        """The single selected element, or ``None`` for zero or several."""
        selected = self.get_selected_elements()
        return selected[0] if len(selected) == 1 else None

    def is_element_selected(self, element: ElementRef) -> bool:
        if element is None:
            return False
        if isinstance(element, Element):
            return any(candidate is element for candidate in self._selected)
        return any(candidate.id == element for candidate in self._selected)

    def __len__(self) -> int:
        return len(self.get_selected_elements())

    @property
    def placing(self) -> Optional[Element]:
        return self._placing

    @property
    def is_placing(self) -> bool:
        return self._placing is not None

    # ------------------------------------------------------------------
    # Mutation; every method returns whether the selection changed
    def _resolve(self, ref: ElementRef) -> Optional[Element]:
        if ref is None:
            return None
        if isinstance(ref, Element):
            return ref if self.circuit.has_element(ref) else None
        return self.circuit.get_element(ref)

    def set_selection(self, refs: Iterable[ElementRef]) -> bool:
        filtered: List[Element] = []
        seen = set()
        for ref in refs:
            element = self._resolve(ref)
            if element is None or element is self._placing or id(element) in seen:
                continue
            filtered.append(element)
            seen.add(id(element))
        if [id(e) for e in filtered] == [id(e) for e in self._selected]:
            return False
        self._selected = filtered
        return True

    def select(self, ref: ElementRef) -> bool:
        return self.set_selection([ref])

    def clear(self) -> bool:
        if not self._selected:
            return False
        self._selected = []
        return True

    def apply(self, hits: Sequence[ElementRef], *, additive: bool = False, toggle: bool = False) -> bool:
        """Merge ``hits`` into the selection; the result keeps circuit order."""
        resolved = [element for element in (self._resolve(ref) for ref in hits) if element is not None]
        current = {id(element) for element in self._selected}
        if toggle:
            for element in resolved:
                if id(element) in current:
                    current.remove(id(element))
                else:
                    current.add(id(element))
            target = current
        elif additive:
            target = current | {id(element) for element in resolved}
        else:
            target = {id(element) for element in resolved}
        return self.set_selection([element for element in self.circuit.elements if id(element) in target])

    # ------------------------------------------------------------------
    # Placement
    def begin_placement(self, element: Element) -> None:
        self._selected = []
        self._placing = element

    def end_placement(self) -> Optional[Element]:
        element, self._placing = self._placing, None
        return element

    def rebind(self) -> None:
        """Re-point references at the circuit's current objects after an import."""
        ids = [element.id for element in self._selected]
        self._selected = [element for element in (self.circuit.get_element(i) for i in ids) if element is not None]
        if self._placing is not None:
            self._placing = self.circuit.get_element(self._placing.id)
