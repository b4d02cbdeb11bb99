"""Top-level fill entry point.

This module ties the pieces together: pick the source and accessor, run
the recursive filler, gate on aggregated failures and, for record types,
build the typed instance.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
from typing import Any, overload

from .core.coercion import CoercionTable
from .core.failures import collect_failures, report_or_raise
from .core.filler import Filler, FillStats
from .core.schema import describe, instantiate, is_record_type
from .core.types import ROOT, FillFailure
from .exceptions import SchemaError
from .resources import ResourceAccessor, accessor_for, as_accessor, load_env_file
from .settings import FillSettings
from .sources import Source, get_source
from .telemetry import FillTelemetry, TelemetryContext

log = logging.getLogger(__name__)

OPEN_TARGET_NAME = "open record"


def resolve_source(source: Source | str | None, settings: FillSettings) -> Source:
    """Return ``source`` itself, a registered source by name, or the default."""
    if isinstance(source, Source):
        return source
    return get_source(source if source is not None else settings.source)


@overload
def fill[T](
    target: type[T],
    *,
    source: Source | str | None = ...,
    accessor: ResourceAccessor | Callable[[str], Any | None] | None = ...,
    properties: Mapping[str, str] | None = ...,
    table: CoercionTable | None = ...,
    settings: FillSettings | None = ...,
    telemetry: FillTelemetry | None = ...,
) -> T: ...


@overload
def fill(
    target: Mapping[str, Any],
    *,
    source: Source | str | None = ...,
    accessor: ResourceAccessor | Callable[[str], Any | None] | None = ...,
    properties: Mapping[str, str] | None = ...,
    table: CoercionTable | None = ...,
    settings: FillSettings | None = ...,
    telemetry: FillTelemetry | None = ...,
) -> dict[str, Any]: ...


def fill(
    target: Any,
    *,
    source: Source | str | None = None,
    accessor: ResourceAccessor | Callable[[str], Any | None] | None = None,
    properties: Mapping[str, str] | None = None,
    table: CoercionTable | None = None,
    settings: FillSettings | None = None,
    telemetry: FillTelemetry | None = None,
) -> Any:
    """Fill ``target`` from an external key/value source.

    Args:
        target: A record type (pydantic model or dataclass), or a mapping of
            defaults describing an open-ended record.
        source: A ``Source`` or the name of a registered one. Defaults to
            ``FillSettings.source`` (``env`` unless ``SCHEMAFILL_SOURCE`` is set).
        accessor: Reads raw values for locators. Defaults to the built-in
            accessor for the source's scheme.
        properties: Property values for the built-in ``prop:`` accessor.
        table: Coercion table; defaults to ``CoercionTable.default()``.
        settings: Runtime settings; read from the environment when omitted.
        telemetry: Optional telemetry context.

    Returns:
        An instance of ``target`` for record types, or the filled mapping for
        open-ended targets.

    Raises:
        FillError: If any field could not be resolved. The message lists
            every such field.
        SchemaError: If ``target`` is neither a record type nor a mapping.
        InstantiationError: If the record type rejects the coerced values.

    Example:
        @dataclass
        class Server:
            host: str
            port: int = 8080

        server = fill(Server, source="prop", properties={"host": "example.org"})
    """
    settings = settings if settings is not None else FillSettings()
    resolved = resolve_source(source, settings)

    if accessor is not None:
        reader = as_accessor(accessor)
    else:
        if settings.env_file is not None and resolved.scheme == "env:":
            load_env_file(settings.env_file)
        reader = accessor_for(resolved, properties=properties, settings=settings)

    filler = Filler(resolved, reader, table if table is not None else CoercionTable.default())
    tele = telemetry if telemetry is not None else TelemetryContext()

    if isinstance(target, Mapping):
        with tele("fill", target=OPEN_TARGET_NAME, source=resolved.name) as ctx:
            tree = filler.fill_open(target, ROOT)
            failures = collect_failures(tree)
            _record(ctx, filler.stats, failures)
        _log_summary(OPEN_TARGET_NAME, resolved, filler.stats, failures)
        report_or_raise(OPEN_TARGET_NAME, failures)
        return tree

    if not is_record_type(target):
        raise SchemaError(
            f"Cannot fill {target!r}: expected a pydantic model class, "
            "a dataclass type or a mapping of defaults"
        )

    schema = describe(target)
    with tele("fill", target=schema.name, source=resolved.name) as ctx:
        tree = filler.fill_structured(schema, ROOT)
        failures = collect_failures(tree)
        _record(ctx, filler.stats, failures)
    _log_summary(schema.name, resolved, filler.stats, failures)
    report_or_raise(schema.name, failures)
    return instantiate(target, tree)


def _record(
    ctx: FillTelemetry, stats: FillStats, failures: list[FillFailure]
) -> None:
    ctx.count("fields.filled", stats.filled)
    ctx.count("fields.defaulted", stats.defaulted)
    ctx.count("fields.skipped", stats.skipped)
    ctx.count("failures", len(failures))


def _log_summary(
    target: str, source: Source, stats: FillStats, failures: list[FillFailure]
) -> None:
    log.debug(
        "Filled %s from '%s': %d read, %d defaulted, %d skipped, %d unresolved",
        target,
        source.name,
        stats.filled,
        stats.defaulted,
        stats.skipped,
        len(failures),
    )
