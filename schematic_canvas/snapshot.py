"""Immutable whole-circuit snapshots used by undo/redo."""
from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NodeModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class ElementRecord(BaseModel):
    """Serialized form of a single element."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique element id within the circuit")
    type: str = Field(..., description="Registered element type tag")
    label: Optional[str] = Field(None, description="Optional display label")
    nodes: List[NodeModel] = Field(default_factory=list, description="Ordered terminal positions")
    properties: Dict[str, Any] = Field(default_factory=dict, description="Property bag, including orientation")


class CircuitSnapshotModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    elements: List[ElementRecord] = Field(default_factory=list)


class Snapshot:
    """Serialized circuit state.

    The canonical text is produced once and never re-serialized; equality and
    hashing go through it, and ``digest`` gives a cheap change test.
    """

    __slots__ = ("_text", "_model", "_digest")

    def __init__(self, model: CircuitSnapshotModel):
        self._model = model
        self._text = json.dumps(model.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
        self._digest = hashlib.sha1(self._text.encode("utf-8")).hexdigest()

    @classmethod
    def parse(cls, text: str) -> "Snapshot":
        """Validate ``text``; raises ``pydantic.ValidationError`` when malformed."""
        return cls(CircuitSnapshotModel.model_validate_json(text))

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "Snapshot":
        return cls(CircuitSnapshotModel(elements=[ElementRecord.model_validate(r) for r in records]))

    @property
    def text(self) -> str:
        return self._text

    @property
    def model(self) -> CircuitSnapshotModel:
        return self._model

    @property
    def digest(self) -> str:
        return self._digest

    def records(self) -> List[Dict[str, Any]]:
        return [record.model_dump() for record in self._model.elements]

    def element_ids(self) -> List[str]:
        return [record.id for record in self._model.elements]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Snapshot):
            return NotImplemented
        return self._text == other._text

    def __hash__(self) -> int:
        return hash(self._text)

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"Snapshot(elements={len(self._model.elements)}, digest={self._digest[:10]})"


def has_state_changed(before: Optional[Snapshot], after: Optional[Snapshot]) -> bool:
    if before is None or after is None:
        return before is not after
    return before.digest != after.digest
