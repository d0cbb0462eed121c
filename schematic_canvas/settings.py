"""Engine tuning knobs and their JSON loader."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSettings:
    """Distances are in logical units, intervals in milliseconds."""

    grid_spacing: float = 10.0
    hit_aura: float = 10.0
    node_proximity: float = 15.0
    jitter_threshold: float = 2.0
    component_span: float = 50.0
    hover_interval_ms: float = 16.0
    paste_offset: float = 20.0
    history_limit: int = 100
    zoom_min: float = 1.0
    zoom_max: float = 3.0
    zoom_initial: float = 1.5
    zoom_step: float = 1.1
    index_max_items: int = 8
    index_max_depth: int = 6


def load_settings(path: Optional[Union[str, Path]] = None, base: Optional[EngineSettings] = None) -> EngineSettings:
    """Overlay values from a JSON object onto ``base`` (defaults when omitted)."""
    settings = base or EngineSettings()
    if path is None:
        return settings
    config_path = Path(path)
    if not config_path.exists():
        return settings
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read settings from %s: %s", config_path, exc)
        return settings
    if not isinstance(data, dict):
        logger.warning("Settings file %s does not hold an object", config_path)
        return settings

    known = {field.name: field for field in fields(EngineSettings)}
    updates = {}
    for key, value in data.items():
        field = known.get(key)
        if field is None:
            logger.warning("Ignoring unknown setting %r", key)
            continue
        caster = int if field.type in (int, "int") else float
        try:
            parsed = caster(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid value %r for %s", value, key)
            continue
        if parsed < 0:
            logger.warning("Ignoring negative value %r for %s", value, key)
            continue
        updates[key] = parsed
    return replace(settings, **updates)
