"""Shared formatting functions for MCP responses.

Everything returned to the agent goes through here: work items as CSV with
only the columns that carry data, small lookups as compact JSON or bare CSV
rows. Output favours token count over readability.
"""
import csv
import io
import json
from typing import Any, Iterable, Sequence

from .errors import ProjectionError, SerializationError


# Candidate columns for work item CSV, in output order
WORK_ITEM_COLUMNS = [
    "id",
    "Type",
    "Title",
    "Description",
    "Acceptance",
    "Column",
    "Lane",
    "Priority",
    "AssignedTo",
    "CreatedBy",
    "CreatedDate",
    "ChangedBy",
    "ChangedDate",
    "AreaPath",
    "Iteration",
    "Project",
    "Tags",
    "StartDate",
    "TargetDate",
    "Effort",
    "Risk",
    "Justification",
    "ValueArea",
    "StackRank",
    "History",
    "comments",
]


def to_compact_json(value: Any) -> str:
    """Serialize ``value`` as JSON without insignificant whitespace."""
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to serialize JSON: {e}") from e


def _write_csv(rows: Iterable[Sequence[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    try:
        writer.writerows(rows)
    except csv.Error as e:
        raise SerializationError(f"Failed to write CSV: {e}") from e
    return buffer.getvalue()


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    return True


def active_columns(items: list[dict]) -> list[str]:
    """Columns for which at least one item has a non-null, non-empty value."""
    return [
        column for column in WORK_ITEM_COLUMNS
        if any(isinstance(item, dict) and _has_value(item.get(column)) for item in items)
    ]


def format_cell(column: str, value: Any) -> str:
    """Render one CSV cell; unsupported shapes become an empty cell."""
    if isinstance(value, str):
        # Keep one record per line for the consumer
        return value.replace("\n", "\\n").replace("\t", "\\t").replace("\r", "")
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, list) and column == "comments":
        return to_compact_json(value)
    return ""


def work_items_to_csv(value: Any) -> str:
    """Project simplified work items (one object or a list) to CSV.

    Only columns with data in at least one item are emitted, so every row has
    the same cells. An empty list produces an empty string, not a header.
    """
    if isinstance(value, list):
        items = value
    elif isinstance(value, dict):
        items = [value]
    else:
        raise ProjectionError("Invalid input: expected object or array")

    if not items:
        return ""

    columns = active_columns(items)
    rows: list[list[str]] = [columns]
    for item in items:
        item = item if isinstance(item, dict) else {}
        rows.append([format_cell(column, item.get(column)) for column in columns])
    return _write_csv(rows)


def rows_to_csv(rows: Iterable[Sequence[Any]]) -> str:
    """Headerless CSV for small lookups (team members, current user)."""
    return _write_csv(rows)


def board_columns_to_csv(columns: list[dict]) -> str:
    """Format board columns as ``name,item_limit,is_split,column_type`` CSV."""
    rows: list[list[Any]] = [["name", "item_limit", "is_split", "column_type"]]
    for column in columns:
        rows.append([
            column.get("name", ""),
            column.get("itemLimit", 0),
            "true" if column.get("isSplit") else "false",
            column.get("columnType", ""),
        ])
    return _write_csv(rows)


def _date_part(value: Any) -> str:
    if not value:
        return "N/A"
    return str(value).split("T", 1)[0]


def format_iteration(iteration: dict) -> str:
    """Format an iteration as ``name,start,finish`` (dates without time)."""
    attributes = iteration.get("attributes") or {}
    return ",".join([
        iteration.get("name", ""),
        _date_part(attributes.get("startDate")),
        _date_part(attributes.get("finishDate")),
    ])


def format_iteration_with_timeframe(iteration: dict) -> str:
    """Format an iteration as ``name,timeframe,start,finish``."""
    attributes = iteration.get("attributes") or {}
    return ",".join([
        iteration.get("name", ""),
        attributes.get("timeFrame") or "N/A",
        _date_part(attributes.get("startDate")),
        _date_part(attributes.get("finishDate")),
    ])


def collect_node_paths(node: dict) -> list[str]:
    """Flatten a classification node tree into its paths, depth first."""
    paths = [node.get("path", "")]
    for child in node.get("children") or []:
        paths.extend(collect_node_paths(child))
    return paths
