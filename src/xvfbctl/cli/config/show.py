"""
xvfbctl config show command.

SUMMARY: Show current configuration

Displays the merged configuration from bundled defaults, user and project
overrides, and XVFBCTL_* environment variables.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any

import yaml

from xvfbctl.cli import OutputFormatter, add_json_flag, add_repo_root_flag, get_repo_root
from xvfbctl.core.config import ConfigManager
from xvfbctl.core.schemas import SchemaValidationError

SUMMARY = "Show current configuration"

_MISSING = object()


def _nest_key(key: str, value: Any) -> Any:
    """Nest a dot-notation key into a YAML/JSON-friendly mapping."""
    out = value
    for part in reversed([p for p in str(key).split(".") if p]):
        out = {part: out}
    return out


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument(
        "key",
        nargs="?",
        help="Specific configuration key to show (e.g., 'xvfb.port_base')",
    )
    parser.add_argument(
        "--format",
        choices=["json", "yaml", "table"],
        default="table",
        help="Output format (default: table)",
    )
    add_json_flag(parser)
    add_repo_root_flag(parser)


def _format_value(value: Any, indent: int = 0) -> str:
    prefix = "  " * indent
    if isinstance(value, dict):
        lines = []
        for k, v in value.items():
            formatted = _format_value(v, indent + 1)
            if "\n" in formatted or isinstance(v, dict):
                lines.append(f"{prefix}{k}:")
                lines.append(formatted)
            else:
                lines.append(f"{prefix}{k}: {formatted}")
        return "\n".join(lines)
    if isinstance(value, list):
        return f"[{', '.join(str(v) for v in value)}]"
    if value is None:
        return "null"
    return str(value)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        manager = ConfigManager(get_repo_root(args))
        config_data = manager.load_config(validate=True)
        output_format = "json" if args.json else args.format

        if args.key:
            value = manager.get(args.key, _MISSING)
            if value is _MISSING:
                raise KeyError(f"Key not found: {args.key}")
            data: Any = {args.key: value}
            nested = _nest_key(args.key, value)
        else:
            data = config_data
            nested = config_data

        if output_format == "json":
            formatter.json_output(data)
        elif output_format == "yaml":
            formatter.text(
                yaml.safe_dump(nested, default_flow_style=False, sort_keys=True, allow_unicode=True).rstrip()
            )
        else:
            formatter.text(_format_value(nested))
        return 0

    except KeyError as e:
        formatter.error(e, str(e.args[0]), error_code="config_key_not_found")
        return 1
    except (SchemaValidationError, OSError, ValueError, yaml.YAMLError) as e:
        formatter.error(e, error_code="config_show_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
