"""Schema validation utilities.

Schemas are JSON Schema documents stored as YAML under
``xvfbctl/data/schemas/``. A project may shadow a bundled schema by placing a
file with the same relative name under ``<project>/.xvfbctl/schemas/``.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema
from jsonschema import Draft202012Validator

from xvfbctl.core.utils.io import read_yaml
from xvfbctl.core.utils.paths import get_project_config_dir
from xvfbctl.data import get_data_path


class SchemaValidationError(ValueError):
    """Raised when schema validation fails."""

    pass


def _iter_schema_dirs(repo_root: Optional[Path] = None) -> List[Path]:
    roots: List[Path] = []
    if repo_root is not None:
        roots.append(get_project_config_dir(repo_root, create=False) / "schemas")
    roots.append(get_data_path("schemas"))
    return roots


def load_schema(schema_name: str, *, repo_root: Optional[Path] = None) -> Dict[str, Any]:
    """Load a schema dict, appending ``.yaml`` when no extension is given.

    Raises:
        FileNotFoundError: If no schema directory contains ``schema_name``.
        ValueError: If the schema is not a YAML mapping.
    """
    lowered = schema_name.lower()
    if not (lowered.endswith(".yaml") or lowered.endswith(".yml")):
        schema_name = f"{schema_name}.yaml"

    schema_path: Optional[Path] = None
    for schemas_dir in _iter_schema_dirs(repo_root):
        candidate = schemas_dir / schema_name
        if candidate.exists():
            schema_path = candidate
            break

    if schema_path is None:
        searched = "\n".join(f"- {p}" for p in _iter_schema_dirs(repo_root))
        raise FileNotFoundError(f"Schema not found: {schema_name}\nSearched:\n{searched}")

    schema = read_yaml(schema_path, default=None, raise_on_error=True)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be a YAML mapping, got {type(schema).__name__}")
    return schema


def validate_payload(
    payload: Dict[str, Any],
    schema_name: str,
    *,
    repo_root: Optional[Path] = None,
) -> None:
    """Validate ``payload`` against ``schema_name``.

    Raises:
        SchemaValidationError: If validation fails.
        FileNotFoundError: If the schema doesn't exist.
    """
    schema = load_schema(schema_name, repo_root=repo_root)

    try:
        jsonschema.validate(instance=payload, schema=schema, cls=Draft202012Validator)
    except jsonschema.ValidationError as exc:
        location = ".".join(str(p) for p in exc.absolute_path) or "<root>"
        raise SchemaValidationError(
            f"Validation failed against schema '{schema_name}' at {location}: {exc.message}"
        ) from exc


__all__ = ["SchemaValidationError", "load_schema", "validate_payload"]
