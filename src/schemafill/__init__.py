"""Fill typed records from environment variables, properties or HTTPS."""

import importlib.metadata
import logging

from schemafill.core.coercion import CoercionTable, TypeKind, parse_array_literal
from schemafill.core.failures import collect_failures, format_report
from schemafill.core.schema import describe
from schemafill.core.types import CoerceFailure, ReadFailure
from schemafill.exceptions import (
    FillError,
    InstantiationError,
    ResourceReadError,
    SchemaError,
    SchemaFillError,
    SourceConfigError,
)
from schemafill.fill import fill
from schemafill.resources import (
    EnvironmentAccessor,
    HttpsAccessor,
    PropertiesAccessor,
    ResourceAccessor,
    load_env_file,
)
from schemafill.settings import FillSettings
from schemafill.sources import (
    ENV,
    HTTPS,
    PROPERTIES,
    Source,
    get_source,
    list_registered_sources,
    register_source,
)
from schemafill.telemetry import TelemetryContext, TelemetryReporter

try:
    __version__ = importlib.metadata.version("schemafill")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Library logger stays silent unless the application configures logging.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Entry point
    "fill",
    "FillSettings",
    # Sources
    "Source",
    "ENV",
    "PROPERTIES",
    "HTTPS",
    "register_source",
    "get_source",
    "list_registered_sources",
    # Accessors
    "ResourceAccessor",
    "EnvironmentAccessor",
    "PropertiesAccessor",
    "HttpsAccessor",
    "load_env_file",
    # Coercion and schema
    "CoercionTable",
    "TypeKind",
    "parse_array_literal",
    "describe",
    # Failures
    "ReadFailure",
    "CoerceFailure",
    "collect_failures",
    "format_report",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
    # Exceptions
    "SchemaFillError",
    "FillError",
    "SchemaError",
    "SourceConfigError",
    "ResourceReadError",
    "InstantiationError",
]
