"""Circuit elements and the registry that knows how to build them."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .geometry import Position

logger = logging.getLogger(__name__)

WIRE = "wire"


@dataclass
class Element:
    """An element owned by a circuit.

    ``nodes`` are index-significant: node 0 is the anchor for single-element
    rotation and the reference point for shape drags.
    """

    id: str
    type: str
    nodes: List[Position]
    properties: Dict[str, Any] = field(default_factory=dict)
    label: Optional[str] = None

    def get_nodes(self) -> List[Position]:
        return self.nodes

    def get_orientation(self) -> float:
        return float(self.properties.get("orientation", 0.0) or 0.0)

    def set_orientation(self, degrees: float) -> None:
        if "orientation" in self.properties:
            self.properties["orientation"] = float(degrees)

    @property
    def is_wire(self) -> bool:
        return self.type == WIRE

    def copy(self) -> "Element":
        return Element(
            id=self.id,
            type=self.type,
            nodes=list(self.nodes),
            properties=dict(self.properties),
            label=self.label,
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "label": self.label,
            "nodes": [{"x": node.x, "y": node.y} for node in self.nodes],
            "properties": dict(self.properties),
        }


@dataclass(frozen=True)
class ElementType:
    """Registry entry describing one kind of element."""

    name: str
    prefix: str
    node_count: int = 2
    rotatable: bool = True
    allows_node_drag: bool = False
    defaults: Mapping[str, Any] = field(default_factory=dict)


class ElementRegistry:
    """Explicit type registry, built once at startup and passed to consumers."""

    def __init__(self, types: Iterable[ElementType] = ()):
        self._types: Dict[str, ElementType] = {}
        for element_type in types:
            self.register(element_type)

    def register(self, element_type: ElementType) -> None:
        if element_type.name in self._types:
            raise ValueError(f"element type {element_type.name!r} already registered")
        self._types[element_type.name] = element_type

    def get(self, name: str) -> ElementType:
        try:
            return self._types[name]
        except KeyError:
            raise KeyError(f"unknown element type {name!r}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def types(self) -> List[str]:
        return list(self._types)

    def next_id(self, type_name: str, taken: Iterable[str]) -> str:
        prefix = self.get(type_name).prefix
        used = set(taken)
        counter = 1
        while f"{prefix}{counter}" in used:
            counter += 1
        return f"{prefix}{counter}"

    def create(
        self,
        type_name: str,
        nodes: Sequence[Any],
        properties: Optional[Mapping[str, Any]] = None,
        label: Optional[str] = None,
        taken: Iterable[str] = (),
        element_id: Optional[str] = None,
    ) -> Element:
        """Build an element of ``type_name`` with a fresh id not in ``taken``."""
        element_type = self.get(type_name)
        positions = [Position.of(node) for node in nodes]
        if len(positions) != element_type.node_count:
            raise ValueError(
                f"{type_name} expects {element_type.node_count} nodes, got {len(positions)}"
            )
        props: Dict[str, Any] = dict(element_type.defaults)
        if properties:
            props.update(properties)
        if element_type.rotatable:
            props["orientation"] = float(props.get("orientation", 0.0) or 0.0)
        new_id = element_id or self.next_id(type_name, taken)
        return Element(id=new_id, type=type_name, nodes=positions, properties=props, label=label)

    def from_record(self, record: Mapping[str, Any]) -> Element:
        """Rehydrate an element exactly as recorded, keeping its id."""
        self.get(record["type"])
        return Element(
            id=str(record["id"]),
            type=str(record["type"]),
            nodes=[Position.of(node) for node in record.get("nodes", [])],
            properties=dict(record.get("properties") or {}),
            label=record.get("label"),
        )


def build_default_registry() -> ElementRegistry:
    return ElementRegistry(
        [
            ElementType(WIRE, "W", node_count=2, rotatable=False, allows_node_drag=True),
            ElementType("resistor", "R", defaults={"resistance": 1000.0}),
            ElementType("capacitor", "C", defaults={"capacitance": 1e-6}),
            ElementType("inductor", "L", defaults={"inductance": 1e-3}),
            ElementType("junction", "J", node_count=1, rotatable=False),
            ElementType("ground", "G", node_count=1),
        ]
    )
