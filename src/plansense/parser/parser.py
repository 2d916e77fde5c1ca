"""
Loader for plan documents in PlanSense's JSON form.

This is not a showplan XML parser. It reads the JSON representation of an
already-parsed plan (what dump_plan writes, and what upstream tooling
exports), validates it against the plan models, and enforces resource limits.

Accepted shapes:
- {"Batches": [{"Statements": [...]}, ...]}
- [{"Statements": [...]}, ...]      (bare list of batches)
- {"Statements": [...]}             (single batch)

Error handling philosophy: Fail fast with clear messages. If we can't load
the input, tell the user exactly what's wrong rather than returning garbage.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from plansense.exceptions import ParseError
from plansense.parser.config import DEFAULT_CONFIG, LoaderConfig
from plansense.parser.models import ParsedPlan


def load_plan(
    source: str | Path | dict[str, Any] | list[Any],
    config: LoaderConfig | None = None,
) -> ParsedPlan:
    """
    Load a plan document into typed models.

    Args:
        source: File path (str or Path), JSON string, dict or list
        config: Resource limits. If None, uses DEFAULT_CONFIG.

    Returns:
        ParsedPlan ready to be analyzed

    Raises:
        ParseError: If input cannot be read, decoded, validated, or exceeds limits

    Example:
        >>> plan = load_plan("plan.json")
        >>> plan = load_plan('{"Batches": [...]}')
    """
    config = config or DEFAULT_CONFIG

    _check_file_size(source, config)

    data = _load_source(source)
    data = _normalize_root(data)

    _check_tree_shape(data, config)

    return _validate_plan(data)


def dump_plan(plan: ParsedPlan, indent: int | None = 2) -> str:
    """Serialize a (possibly annotated) plan back to its JSON form."""
    return plan.model_dump_json(by_alias=True, indent=indent)


def _load_source(source: str | Path | dict[str, Any] | list[Any]) -> dict[str, Any] | list[Any]:
    """Load source into a Python dict/list."""
    if isinstance(source, (dict, list)):
        return source

    if isinstance(source, Path):
        return _load_json_file(source)

    if isinstance(source, str):
        stripped = source.strip()
        if stripped.startswith(("{", "[")):
            return _parse_json_string(stripped)
        return _load_json_file(Path(source))

    raise ParseError(
        f"Unsupported source type: {type(source).__name__}",
        detail="Expected file path, JSON string, dict, or list",
        source="type_check",
    )


def _load_json_file(path: Path) -> dict[str, Any] | list[Any]:
    if not path.exists():
        raise ParseError(f"File not found: {path}", source="file_read")

    if not path.is_file():
        raise ParseError(f"Path is not a file: {path}", source="file_read")

    try:
        content = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise ParseError(
            f"Cannot read file: {path}",
            detail=str(e),
            source="file_read",
        ) from e

    if not content.strip():
        raise ParseError(f"File is empty: {path}", source="file_read")

    return _parse_json_string(content)


def _parse_json_string(content: str) -> dict[str, Any] | list[Any]:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError(
            "Invalid JSON format",
            detail=f"Line {e.lineno}, column {e.colno}: {e.msg}",
            source="json_decode",
        ) from e

    if not isinstance(data, (dict, list)):
        raise ParseError(
            f"Expected JSON object or array, got {type(data).__name__}",
            source="json_decode",
        )

    return data


def _normalize_root(data: dict[str, Any] | list[Any]) -> dict[str, Any]:
    """Bring the accepted shapes to {"Batches": [...]}."""
    if isinstance(data, list):
        return {"Batches": data}

    if "Batches" in data or "batches" in data:
        return data

    if "Statements" in data or "statements" in data:
        return {"Batches": [data]}

    raise ParseError(
        "Missing 'Batches' field - this doesn't look like a plan document",
        detail="Expected an object with 'Batches', a single batch with 'Statements', or a list of batches",
        source="structure",
    )


def _iter_raw_roots(data: dict[str, Any]) -> list[dict[str, Any]]:
    roots: list[dict[str, Any]] = []
    batches = data.get("Batches", data.get("batches"))
    if not isinstance(batches, list):
        return roots
    for batch in batches:
        if not isinstance(batch, dict):
            continue
        statements = batch.get("Statements", batch.get("statements"))
        if not isinstance(statements, list):
            continue
        for stmt in statements:
            if not isinstance(stmt, dict):
                continue
            root = stmt.get("RootNode", stmt.get("root_node"))
            if isinstance(root, dict):
                roots.append(root)
    return roots


def _check_tree_shape(data: dict[str, Any], config: LoaderConfig) -> None:
    """
    Measure node count and depth of the raw document before validation.

    Walks with an explicit stack; stops as soon as a limit is exceeded.
    """
    node_count = 0
    for root in _iter_raw_roots(data):
        stack: list[tuple[dict[str, Any], int]] = [(root, 1)]
        while stack:
            node, depth = stack.pop()
            node_count += 1

            if depth > config.max_depth:
                raise ParseError(
                    f"Plan too deeply nested: depth > {config.max_depth}",
                    detail="This may indicate a pathological query or a corrupted plan document",
                    source="resource_limit",
                )
            if node_count > config.max_nodes:
                raise ParseError(
                    f"Plan too large: more than {config.max_nodes:,} operators",
                    detail="Consider analyzing a simpler query or increasing max_nodes",
                    source="resource_limit",
                )

            children = node.get("Children", node.get("children", []))
            if isinstance(children, list):
                for child in children:
                    if isinstance(child, dict):
                        stack.append((child, depth + 1))


def _validate_plan(data: dict[str, Any]) -> ParsedPlan:
    """Validate against the plan models, converting errors to ParseError."""
    try:
        return ParsedPlan.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = " -> ".join(str(x) for x in error["loc"])
            errors.append(f"  {loc}: {error['msg']}")

        raise ParseError(
            "Plan document validation failed",
            detail="\n".join(errors),
            source="validation",
        ) from e


def _check_file_size(source: str | Path | dict[str, Any] | list[Any], config: LoaderConfig) -> None:
    path: Path | None = None

    if isinstance(source, Path):
        path = source
    elif isinstance(source, str) and not source.strip().startswith(("{", "[")):
        path = Path(source)

    if path is not None and path.exists() and path.is_file():
        size_mb = path.stat().st_size / (1024 * 1024)
        if size_mb > config.max_file_size_mb:
            raise ParseError(
                f"File too large: {size_mb:.1f}MB (max {config.max_file_size_mb}MB)",
                detail="Use a smaller plan document or increase max_file_size_mb",
                source="resource_limit",
            )
