"""Fill engine: coercion, schema description, recursive filler, failures."""

from .coercion import CoercionTable, TypeKind, parse_array_literal
from .failures import collect_failures, format_report, report_or_raise
from .filler import Filler, FillStats
from .schema import FieldDescriptor, RecordSchema, describe, instantiate
from .types import CoerceFailure, FieldPath, FillFailure, ReadFailure

__all__ = [  # noqa: RUF022
    "CoercionTable",
    "TypeKind",
    "parse_array_literal",
    "collect_failures",
    "format_report",
    "report_or_raise",
    "Filler",
    "FillStats",
    "FieldDescriptor",
    "RecordSchema",
    "describe",
    "instantiate",
    "CoerceFailure",
    "FieldPath",
    "FillFailure",
    "ReadFailure",
]
