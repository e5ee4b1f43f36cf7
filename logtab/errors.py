from __future__ import annotations


class LogtabError(Exception):
    """Base class for failures that stop logtab from starting."""


class ConfigError(LogtabError):
    pass


class SourceError(LogtabError):
    pass


class AttributeNotFound(LogtabError, KeyError):
    """Raised when a view has no attribute with the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"No attribute named {self.name!r}."
