"""Resource accessors: read raw values for locators.

An accessor answers ``read(locator)`` with a string, an arbitrary resource
handle, or ``None`` when nothing is there. Absence is normal and is never
raised; ``ResourceReadError`` is reserved for reads that failed for another
reason (network errors, server errors).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, MutableMapping
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx

from .exceptions import ResourceReadError, SourceConfigError

if TYPE_CHECKING:
    from .settings import FillSettings
    from .sources import Source

log = logging.getLogger(__name__)

_ABSENT_STATUSES = frozenset({404, 410})


@runtime_checkable
class ResourceAccessor(Protocol):
    """Duck-typed protocol for resource accessors."""

    def read(self, locator: str) -> Any | None: ...  # noqa: D102


def _strip_scheme(locator: str) -> str:
    _, _, key = locator.partition(":")
    return key


class EnvironmentAccessor:
    """Reads ``env:`` locators from environment variables.

    The key is looked up as written first, then upper-cased, so
    ``env:server_port`` finds either ``server_port`` or ``SERVER_PORT``.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def read(self, locator: str) -> str | None:
        key = _strip_scheme(locator)
        if key in self._environ:
            return self._environ[key]
        return self._environ.get(key.upper())


class PropertiesAccessor:
    """Reads ``prop:`` locators from a mapping of externally supplied properties."""

    def __init__(self, properties: Mapping[str, str] | None = None) -> None:
        self._properties = dict(properties or {})

    def read(self, locator: str) -> str | None:
        return self._properties.get(_strip_scheme(locator))

    @classmethod
    def from_args(cls, items: Iterable[str]) -> PropertiesAccessor:
        """Build from ``key=value`` strings (as given with ``-P`` on the CLI)."""
        return cls(parse_properties(items))


class HttpsAccessor:
    """Reads URL locators with HTTP GET.

    404 and 410 answers mean "absent". Every locator is fetched at most once
    per accessor instance, so repeated reads within one fill agree.
    """

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.timeout = timeout
        self._client = client
        self._cache: dict[str, str | None | ResourceReadError] = {}

    def read(self, locator: str) -> str | None:
        if locator not in self._cache:
            try:
                self._cache[locator] = self._fetch(locator)
            except ResourceReadError as e:
                self._cache[locator] = e
        cached = self._cache[locator]
        if isinstance(cached, ResourceReadError):
            raise cached
        return cached

    def _fetch(self, locator: str) -> str | None:
        log.debug("Fetching resource %s", locator)
        try:
            if self._client is not None:
                response = self._client.get(locator, follow_redirects=True)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.get(locator, follow_redirects=True)
        except httpx.TimeoutException as e:
            raise ResourceReadError(f"request timed out: {locator}") from e
        except httpx.HTTPError as e:
            raise ResourceReadError(f"failed to fetch {locator}: {e}") from e

        if response.status_code in _ABSENT_STATUSES:
            return None
        if response.is_error:
            raise ResourceReadError(f"HTTP error {response.status_code}: {locator}")
        return response.text


class _CallableAccessor:
    __slots__ = ("_func",)

    def __init__(self, func: Callable[[str], Any | None]) -> None:
        self._func = func

    def read(self, locator: str) -> Any | None:
        return self._func(locator)


def as_accessor(
    accessor: ResourceAccessor | Callable[[str], Any | None],
) -> ResourceAccessor:
    """Accept either an accessor object or a plain ``locator -> value`` function."""
    if isinstance(accessor, ResourceAccessor):
        return accessor
    if callable(accessor):
        return _CallableAccessor(accessor)
    raise TypeError(f"not a resource accessor: {accessor!r}")


def accessor_for(
    source: Source,
    *,
    properties: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
    settings: FillSettings | None = None,
) -> ResourceAccessor:
    """Return the built-in accessor matching ``source``'s scheme.

    Raises:
        SourceConfigError: If no built-in accessor serves the scheme.
    """
    if source.scheme == "env:":
        return EnvironmentAccessor(environ)
    if source.scheme == "prop:":
        return PropertiesAccessor(properties)
    if source.scheme in ("https:", "http:"):
        timeout = settings.https_timeout if settings is not None else 10.0
        return HttpsAccessor(timeout=timeout)
    raise SourceConfigError(
        f"No built-in accessor for scheme '{source.scheme}' "
        f"(source '{source.name}'); pass an accessor explicitly"
    )


def parse_properties(items: Iterable[str]) -> dict[str, str]:
    """Parse ``key=value`` strings into a mapping; later keys win.

    Raises:
        ValueError: If an item has no ``=`` or an empty key.
    """
    properties: dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid property {item!r}. Expected KEY=VALUE format.")
        properties[key] = value
    return properties


def load_env_file(
    env_file: str | Path,
    environ: MutableMapping[str, str] | None = None,
) -> dict[str, str]:
    """Load ``KEY=VALUE`` lines from a .env file into ``environ``.

    Existing variables are never overridden. Surrounding quotes are
    stripped, blank lines and ``#`` comments are skipped.

    Returns:
        The variables that were newly set.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If a line is malformed or the file cannot be read.
    """
    target = os.environ if environ is None else environ
    env_path = Path(env_file)
    if not env_path.exists():
        raise FileNotFoundError(f"Environment file not found: {env_path}")

    loaded: dict[str, str] = {}
    try:
        with env_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()

                if not line or line.startswith("#"):
                    continue

                if "=" not in line:
                    raise ValueError(
                        f"Invalid format at line {line_num}: {line}. "
                        "Expected KEY=VALUE format."
                    )

                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()

                if (value.startswith('"') and value.endswith('"')) or (
                    value.startswith("'") and value.endswith("'")
                ):
                    value = value[1:-1]

                if key not in target:
                    target[key] = value
                    loaded[key] = value
    except OSError as e:
        raise ValueError(f"Failed to read environment file {env_path}: {e}") from e

    log.debug("Loaded %d variables from %s", len(loaded), env_path)
    return loaded
