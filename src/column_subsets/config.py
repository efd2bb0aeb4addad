"""Resolver settings, optionally read from a TOML file."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from column_subsets.types import CapabilityMarker, TieBreak

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "column_subsets.toml"
CONFIG_SECTION = "resolver"


@dataclass(frozen=True)
class ResolverConfig:
    """Settings shared by both resolution modes."""

    min_subset_size: int = 2
    min_base_fields: int = 2  # smaller registry types never anchor a column set
    type_prefix: str = "ColumnSubset"
    first_id: int = 1
    anchored_first_id: int = 10
    marker: str = "IColumnSubset"  # "" disables the marker
    include_column_sets: bool = True
    tie_break: TieBreak = TieBreak.DISCOVERY
    strict_anchor: bool = False
    warn_column_count: int = 16

    def __post_init__(self) -> None:
        if self.min_subset_size < 1:
            raise ValueError(f"min_subset_size must be at least 1, got {self.min_subset_size}")
        if self.min_base_fields < 0:
            raise ValueError(f"min_base_fields must not be negative, got {self.min_base_fields}")
        if isinstance(self.tie_break, str):
            object.__setattr__(self, "tie_break", TieBreak(self.tie_break))

    @property
    def capability_marker(self) -> CapabilityMarker | None:
        return CapabilityMarker(self.marker) if self.marker else None

    def merged(self, **overrides: Any) -> ResolverConfig:
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> dict[str, Any]:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def config_from_table(section: dict[str, Any]) -> ResolverConfig:
    """Build a ResolverConfig from a ``[resolver]`` table.

    Unknown keys are ignored. Values of the wrong type raise ValueError.
    """
    defaults = ResolverConfig()
    values: dict[str, Any] = {}
    for f in fields(ResolverConfig):
        if f.name not in section:
            continue
        value = section[f.name]
        expected = type(getattr(defaults, f.name))
        if expected is TieBreak:
            if not isinstance(value, str):
                raise ValueError(f"Config key '{f.name}' must be a string")
            try:
                value = TieBreak(value)
            except ValueError:
                choices = ", ".join(t.value for t in TieBreak)
                raise ValueError(f"Config key '{f.name}' must be one of: {choices}") from None
        elif expected is int and (isinstance(value, bool) or not isinstance(value, int)):
            raise ValueError(f"Config key '{f.name}' must be an integer")
        elif not isinstance(value, expected):
            raise ValueError(f"Config key '{f.name}' must be {expected.__name__}")
        values[f.name] = value
    known = {f.name for f in fields(ResolverConfig)}
    for key in section:
        if key not in known:
            logger.debug("Ignoring unknown config key '%s'", key)
    return ResolverConfig(**values)


def resolver_defaults(root: Path | None = None, config_path: Path | None = None) -> ResolverConfig:
    """Read the ``[resolver]`` section of the config file, if any."""
    data = load_config(root=root, config_path=config_path)
    section = data.get(CONFIG_SECTION, {})
    return config_from_table(section if isinstance(section, dict) else {})
