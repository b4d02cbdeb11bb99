"""Command-line front end.

Usage:
    python -m schemafill myapp.settings:ServerConfig
    python -m schemafill myapp.settings:ServerConfig -P port=8080 --json
    python -m schemafill myapp.settings:DEFAULTS --source https --check
"""

import argparse
from collections.abc import Mapping, Sequence
import dataclasses
import importlib
import json
import sys
from typing import Any

import pydantic

from .exceptions import FillError, SchemaFillError
from .fill import fill
from .resources import parse_properties
from .settings import FillSettings
from .sources import list_registered_sources

# ruff: noqa: T201


def load_target(target: str) -> Any:
    """Import ``module:attribute`` (attribute may be dotted).

    Raises:
        ValueError: If ``target`` is not in ``module:attribute`` form.
        ImportError: If the module cannot be imported.
        AttributeError: If the attribute does not exist.
    """
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Invalid target {target!r}. Expected module:attribute.")
    obj: Any = importlib.import_module(module_name)
    for part in attribute.split("."):
        obj = getattr(obj, part)
    return obj


def to_plain(value: Any) -> Any:
    """Convert a filled result into JSON-friendly builtins."""
    if isinstance(value, pydantic.BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schemafill",
        description="Fill a record type or a mapping of defaults from an "
        "external key/value source",
    )
    parser.add_argument(
        "target", help="module:attribute naming a record type or a mapping"
    )
    parser.add_argument(
        "--source",
        help=f"Source name (registered: {', '.join(list_registered_sources())}); "
        "defaults to SCHEMAFILL_SOURCE, or 'prop' when -P is given",
    )
    parser.add_argument(
        "-P",
        "--property",
        dest="properties",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Property served to the 'prop' source (repeatable)",
    )
    parser.add_argument("--env-file", help=".env file loaded before reading")
    parser.add_argument("--timeout", type=float, help="HTTPS read timeout in seconds")
    parser.add_argument(
        "--json", action="store_true", help="Print the filled value as JSON"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Print nothing; exit code 0 if the fill succeeds, 1 otherwise",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    overrides: dict[str, Any] = {}
    if args.env_file:
        overrides["env_file"] = args.env_file
    if args.timeout is not None:
        overrides["https_timeout"] = args.timeout

    try:
        target = load_target(args.target)
        properties = parse_properties(args.properties)
        settings = FillSettings(**overrides)
    except (ImportError, AttributeError, ValueError) as e:
        parser.error(str(e))

    source = args.source or ("prop" if properties else None)

    try:
        result = fill(target, source=source, properties=properties, settings=settings)
    except FillError as e:
        if not args.check:
            print(e, file=sys.stderr)
        return 1
    except (SchemaFillError, OSError, ValueError) as e:
        if not args.check:
            print(f"error: {e}", file=sys.stderr)
        return 1

    if args.check:
        return 0

    plain = to_plain(result)
    if args.json:
        print(json.dumps(plain, indent=2, default=str))
    elif isinstance(plain, Mapping):
        for key, value in plain.items():
            print(f"{key}: {value}")
    else:
        print(plain)
    return 0


def run() -> None:
    """Console-script wrapper around ``main``."""
    sys.exit(main())
