from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import AttributeNotFound, ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "logtab"


class FilterOp(str, Enum):
    EQUAL = "=="
    NOT_EQUAL = "!="
    REGEX_EQUAL = "=~"
    REGEX_NOT_EQUAL = "!~"
    CONTAINS = "contains"
    NOT_CONTAINS = "not contains"
    GREATER_THAN = ">"
    LESS_THAN = "<"
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN_OR_EQUAL = "<="

    @classmethod
    def parse(cls, raw: str) -> "FilterOp":
        """Return the operator spelled *raw*; raises ValueError otherwise."""
        return cls(raw.strip())


@dataclass
class Attribute:
    """One table column: how to extract it and how wide to draw it."""

    name: str
    width: int = 15
    selectors: list[str] = field(default_factory=lambda: ["."])
    type: str = "plain"
    format: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "width": self.width,
            "selectors": list(self.selectors),
            "type": self.type,
            "format": self.format,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Attribute":
        selectors = raw.get("selectors") or ["."]
        if not isinstance(selectors, list) or not all(isinstance(s, str) for s in selectors):
            raise ConfigError(f"Attribute {raw.get('name')!r}: selectors must be a list of strings.")
        fmt = raw.get("format")
        return cls(
            name=str(raw["name"]),
            width=int(raw.get("width", 15)),
            selectors=list(selectors),
            type=str(raw.get("type") or "plain"),
            format=str(fmt) if fmt is not None else None,
        )


@dataclass
class Filter:
    """A row inclusion rule. `attr` names an attribute, None means the raw row."""

    term: str = ""
    operator: FilterOp = FilterOp.CONTAINS
    attr: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"term": self.term, "operator": self.operator.value, "attr": self.attr}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Filter":
        op_raw = raw.get("operator") or FilterOp.CONTAINS.value
        try:
            operator = FilterOp.parse(str(op_raw))
        except ValueError as exc:
            raise ConfigError(f"Invalid filter operator: {op_raw!r}") from exc
        attr = raw.get("attr")
        return cls(
            term=str(raw.get("term", "")),
            operator=operator,
            attr=str(attr) if attr else None,
        )


@dataclass
class LogView:
    name: str
    source: str = "file"
    options: Dict[str, str] = field(default_factory=dict)
    attributes: list[Attribute] = field(default_factory=list)
    filters: list[Filter] = field(default_factory=list)

    def attribute(self, name: str) -> Attribute:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        raise AttributeNotFound(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "source": self.source,
            "options": dict(self.options),
            "attributes": [attr.to_dict() for attr in self.attributes],
            "filters": [flt.to_dict() for flt in self.filters],
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "LogView":
        try:
            name = str(raw["name"])
            options = {str(k): str(v) for k, v in (raw.get("options") or {}).items()}
            attributes = [Attribute.from_dict(item) for item in raw.get("attributes") or []]
            filters = [Filter.from_dict(item) for item in raw.get("filters") or []]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ConfigError(f"Malformed view definition: {exc}") from exc
        seen: set[str] = set()
        for attr in attributes:
            if attr.name in seen:
                raise ConfigError(f"View {name!r} defines attribute {attr.name!r} twice.")
            seen.add(attr.name)
        return cls(
            name=name,
            source=str(raw.get("source") or "file"),
            options=options,
            attributes=attributes,
            filters=filters,
        )


@dataclass
class Config:
    views: list[LogView] = field(default_factory=list)

    def view(self, name: Optional[str] = None) -> LogView:
        """Return the view called *name*, or the first one when no name is given."""
        if not self.views:
            raise ConfigError("No views are configured.")
        if name is None:
            return self.views[0]
        for view in self.views:
            if view.name == name:
                return view
        raise ConfigError(f"No view named {name!r}.")


def get_xdg_config_home() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg).expanduser()
    return Path.home() / ".config"


def default_config_path() -> Path:
    return get_xdg_config_home() / APP_NAME / "config.json"


class ConfigStore:
    """JSON backed storage for the saved views."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else default_config_path()

    def load(self) -> Config:
        if not self.path.exists():
            logger.info("No config at %s; starting empty", self.path)
            return Config()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"Failed to read {self.path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"{self.path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("views", []), list):
            raise ConfigError(f"{self.path} must contain an object with a 'views' list.")
        views = [LogView.from_dict(raw) for raw in data.get("views", [])]
        logger.info("Loaded %d view(s) from %s", len(views), self.path)
        return Config(views=views)

    def save(self, config: Config) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"views": [view.to_dict() for view in config.views]}
        self.path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        logger.info("Saved %d view(s) to %s", len(config.views), self.path)
