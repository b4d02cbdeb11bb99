"""Source configurations: how a field path becomes a resource locator.

A ``Source`` pairs a scheme prefix with a path separator and, optionally, a
custom locator template. Three presets ship with the package (environment,
external properties, HTTPS); callers can register their own.
"""

from __future__ import annotations

from collections.abc import Callable
import dataclasses
import re

from schemafill.core.types import FieldPath
from schemafill.exceptions import SourceConfigError

SCHEME_PATTERN = re.compile(r"\w+:")

type LocatorTemplate = Callable[[str, str, FieldPath], str]


def build_locator(scheme: str, separator: str, path: FieldPath) -> str:
    """Default template: ``scheme + separator.join(path)``."""
    return scheme + separator.join(path)


def authority_locator(scheme: str, separator: str, path: FieldPath) -> str:
    """URL-style template: ``scheme + "//" + separator.join(path)``."""
    return scheme + "//" + separator.join(path)


@dataclasses.dataclass(frozen=True, slots=True)
class Source:
    """Immutable description of one resource source.

    ``hint`` is formatted with ``key`` (the locator without its scheme),
    ``key_upper`` and ``locator`` to tell a user how to supply a missing value.
    """

    name: str
    scheme: str
    separator: str
    template: LocatorTemplate = build_locator
    hint: str = "supply a value at {locator}"

    def __post_init__(self) -> None:
        if not isinstance(self.scheme, str) or not SCHEME_PATTERN.fullmatch(
            self.scheme
        ):
            raise SourceConfigError(
                f"Source '{self.name}': scheme must look like 'name:', "
                f"got {self.scheme!r}"
            )
        if not self.name:
            raise SourceConfigError("Source name cannot be empty")

    def locate(self, path: FieldPath) -> str:
        """Build the locator for ``path``."""
        return self.template(self.scheme, self.separator, path)

    def key_for(self, locator: str) -> str:
        """Return the part of ``locator`` after the scheme."""
        return locator.removeprefix(self.scheme)

    def missing_hint(self, locator: str) -> str:
        """Instruction for supplying a value that was not found."""
        key = self.key_for(locator)
        return self.hint.format(key=key, key_upper=key.upper(), locator=locator)


ENV = Source(
    name="env",
    scheme="env:",
    separator="_",
    hint="set environment variable {key_upper}",
)
PROPERTIES = Source(
    name="prop",
    scheme="prop:",
    separator=".",
    hint="pass -P{key}=<value>",
)
HTTPS = Source(
    name="https",
    scheme="https:",
    separator="/",
    template=authority_locator,
    hint="publish a value at {locator}",
)


class SourceRegistry:
    """Named source configurations available to ``fill`` and the CLI."""

    def __init__(self, *sources: Source) -> None:
        self._sources: dict[str, Source] = {}
        for source in sources:
            self.register(source)

    def register(self, source: Source) -> None:
        """Register ``source`` under its name, replacing any previous entry."""
        self._sources[source.name] = source

    def unregister(self, name: str) -> bool:
        """Remove a source; return True if it was registered."""
        return self._sources.pop(name, None) is not None

    def get(self, name: str) -> Source:
        """Look up a source by name.

        Raises:
            SourceConfigError: If no source of that name is registered.
        """
        try:
            return self._sources[name]
        except KeyError:
            available = ", ".join(sorted(self._sources)) or "<none>"
            raise SourceConfigError(
                f"Source '{name}' not registered. Available sources: {available}"
            ) from None

    def is_registered(self, name: str) -> bool:
        return name in self._sources

    def list_sources(self) -> list[str]:
        return sorted(self._sources)


_global_registry = SourceRegistry(ENV, PROPERTIES, HTTPS)


def register_source(source: Source) -> None:
    """Register a source in the global registry."""
    _global_registry.register(source)


def get_source(name: str) -> Source:
    """Look up a source in the global registry."""
    return _global_registry.get(name)


def list_registered_sources() -> list[str]:
    """Names of all globally registered sources."""
    return _global_registry.list_sources()


def get_source_registry() -> SourceRegistry:
    """Return the global registry (mainly for tests and extensions)."""
    return _global_registry
