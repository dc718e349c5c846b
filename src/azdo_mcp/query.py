"""Build WIQL queries from structured filters.

Only a conjunctive subset of WIQL is produced: every clause is ANDed, there is
no OR grouping and no parentheses. Every literal goes through ``quote`` so a
filter value can never terminate its string early.
"""
from .models import FilterSpec


def quote(value: str) -> str:
    """Return ``value`` as a WIQL string literal, doubling embedded single quotes."""
    return "'" + value.replace("'", "''") + "'"


def _in_list(values) -> str:
    return "(" + ", ".join(quote(v) for v in values) + ")"


# (field, FilterSpec attribute) for the set-membership clauses, in emission order
_INCLUDE_SETS = [
    ("[System.BoardColumn]", "include_board_column"),
    ("[System.BoardLane]", "include_board_row"),
    ("[System.WorkItemType]", "include_work_item_type"),
    ("[State]", "include_state"),
]
_EXCLUDE_SETS = [
    ("[System.BoardColumn]", "exclude_board_column"),
    ("[System.BoardLane]", "exclude_board_row"),
    ("[System.WorkItemType]", "exclude_work_item_type"),
    ("[State]", "exclude_state"),
]


def build_conditions(spec: FilterSpec) -> list[str]:
    """Return the WHERE clauses for ``spec`` in their fixed order."""
    conditions = []

    if spec.area_path:
        conditions.append(f"[System.AreaPath] UNDER {quote(spec.area_path)}")
    if spec.iteration_path:
        conditions.append(f"[System.IterationPath] UNDER {quote(spec.iteration_path)}")

    if spec.created_date_from:
        conditions.append(f"[System.CreatedDate] >= {quote(spec.created_date_from)}")
    if spec.created_date_to:
        conditions.append(f"[System.CreatedDate] <= {quote(spec.created_date_to)}")
    if spec.modified_date_from:
        conditions.append(f"[System.ChangedDate] >= {quote(spec.modified_date_from)}")
    if spec.modified_date_to:
        conditions.append(f"[System.ChangedDate] <= {quote(spec.modified_date_to)}")

    for field, attr in _INCLUDE_SETS:
        values = getattr(spec, attr)
        if values:
            conditions.append(f"{field} IN {_in_list(values)}")
    for field, attr in _EXCLUDE_SETS:
        values = getattr(spec, attr)
        if values:
            conditions.append(f"{field} NOT IN {_in_list(values)}")

    if spec.include_assigned_to:
        conditions.append(f"[System.AssignedTo] IN {_in_list(spec.include_assigned_to)}")
    if spec.exclude_assigned_to:
        conditions.append(f"[System.AssignedTo] NOT IN {_in_list(spec.exclude_assigned_to)}")

    for tag in spec.include_tags:
        conditions.append(f"[Tags] CONTAINS {quote(tag)}")
    for tag in spec.exclude_tags:
        conditions.append(f"NOT [Tags] CONTAINS {quote(tag)}")

    return conditions


def build_wiql(spec: FilterSpec, project: str) -> str:
    """Build a ``SELECT [Id]`` query for ``spec``.

    With no filters at all the query is scoped to ``project`` instead of
    matching every work item in the collection.
    """
    conditions = build_conditions(spec)
    if not conditions:
        return f"SELECT [Id] FROM WorkItems WHERE [Project] = {quote(project)}"
    return "SELECT [Id] FROM WorkItems WHERE " + " AND ".join(conditions)
