"""MCP tool definitions for Azure DevOps.

This module provides the definitive list of tools the server exposes. Tool
names here must match the handler map in server.py.
"""

from typing import Optional

from mcp.types import Tool


_ORGANIZATION = {
    "type": "string",
    "description": "AzDO organization name (defaults to the configured organization)"
}
_PROJECT = {
    "type": "string",
    "description": "AzDO project name (defaults to the configured project)"
}
_TEAM_ID = {
    "type": "string",
    "description": "Team ID or name"
}
_BOARD_ID = {
    "type": "string",
    "description": "Board ID or name"
}
_COMMENTS = {
    "type": "integer",
    "description": "Include the latest N comments (optional). Set to -1 for all comments."
}


def _string_list(description: str) -> dict:
    return {"type": "array", "items": {"type": "string"}, "description": description}


def _schema(properties: dict, required: Optional[list[str]] = None, scoped: bool = True) -> dict:
    """Build an object input schema, prepending organization/project when scoped."""
    all_properties = {"organization": _ORGANIZATION, "project": _PROJECT} if scoped else {}
    all_properties.update(properties)
    schema = {"type": "object", "properties": all_properties}
    if required:
        schema["required"] = required
    return schema


_WORK_ITEM_FIELDS = {
    "description": {"type": "string", "description": "Work item description (basic HTML supported)"},
    "assigned_to": {"type": "string", "description": "User to assign the work item to (email or display name)"},
    "area_path": {"type": "string", "description": "Area path (e.g., \"MyProject\\\\Team1\")"},
    "iteration_path": {"type": "string", "description": "Iteration path (e.g., \"MyProject\\\\Sprint 1\"). "
                                                        "Use azdo_get_team_current_iteration to find the current one."},
    "state": {"type": "string", "description": "State (New, Active, Resolved, Closed, etc.)"},
    "board_column": {"type": "string", "description": "Board column to place the work item in"},
    "board_row": {"type": "string", "description": "Board row/swimlane to place the work item in"},
    "priority": {"type": "integer", "description": "Priority (1-4, where 1 is highest)"},
    "severity": {"type": "string", "description": "Severity for bugs (Critical, High, Medium, Low)"},
    "story_points": {"type": "number", "description": "Story points for estimation"},
    "effort": {"type": "number", "description": "Effort estimate in hours"},
    "remaining_work": {"type": "number", "description": "Remaining work in hours"},
    "tags": {"type": "string", "description": "Semicolon-separated tags (e.g., \"bug; critical\")"},
    "activity": {"type": "string", "description": "Activity type (Development, Testing, Documentation, etc.)"},
    "start_date": {"type": "string", "description": "Start date (YYYY-MM-DD)"},
    "target_date": {"type": "string", "description": "Target/due date (YYYY-MM-DD)"},
    "acceptance_criteria": {"type": "string", "description": "Acceptance criteria"},
    "repro_steps": {"type": "string", "description": "Reproduction steps (for bugs)"},
    "fields": {"type": "string", "description": "Optional extra fields as a JSON object string, "
                                                "keyed by reference name (e.g., {\"Custom.Team\": \"A\"})"},
}

_FILTERS = {
    "area_path": {"type": "string", "description": "Area path to filter by (e.g., \"MyProject\\\\Team1\"). "
                                                  "Uses UNDER to include child paths."},
    "iteration_path": {"type": "string", "description": "Iteration path to filter by (e.g., \"MyProject\\\\Sprint 1\"). "
                                                       "Uses UNDER to include child paths."},
    "created_date_from": {"type": "string", "description": "Created on or after. Format: YYYY-MM-DD or YYYY-MM-DDTHH:MM:SSZ"},
    "created_date_to": {"type": "string", "description": "Created on or before. Format: YYYY-MM-DD or YYYY-MM-DDTHH:MM:SSZ"},
    "modified_date_from": {"type": "string", "description": "Modified on or after. Format: YYYY-MM-DD or YYYY-MM-DDTHH:MM:SSZ"},
    "modified_date_to": {"type": "string", "description": "Modified on or before. Format: YYYY-MM-DD or YYYY-MM-DDTHH:MM:SSZ"},
    "include_board_column": _string_list("Board columns to include (e.g., [\"Active\", \"Resolved\"])"),
    "include_board_row": _string_list("Board rows/swimlanes to include"),
    "include_work_item_type": _string_list("Work item types to include (e.g., [\"Bug\", \"User Story\"])"),
    "include_state": _string_list("States to include (e.g., [\"Active\", \"Resolved\"])"),
    "include_assigned_to": _string_list("Assignees to include (e.g., [\"John Doe\", \"jane@example.com\"])"),
    "include_tags": _string_list("Tags that must all be present"),
    "exclude_board_column": _string_list("Board columns to exclude"),
    "exclude_board_row": _string_list("Board rows/swimlanes to exclude"),
    "exclude_work_item_type": _string_list("Work item types to exclude"),
    "exclude_state": _string_list("States to exclude (e.g., [\"Closed\", \"Removed\"])"),
    "exclude_assigned_to": _string_list("Assignees to exclude"),
    "exclude_tags": _string_list("Tags that must all be absent (e.g., [\"wontfix\"])"),
    "include_latest_n_comments": _COMMENTS,
}


def get_tools() -> list[Tool]:
    """Get the list of all MCP tools for Azure DevOps."""
    return [
        # ============================================================================
        # Work Item Tools
        # ============================================================================
        Tool(
            name="azdo_get_work_item",
            description="Get work item by ID. Returns CSV with only the columns that have values.",
            inputSchema=_schema({
                "id": {"type": "integer", "description": "Work item ID"},
                "include_latest_n_comments": _COMMENTS,
            }, required=["id"])
        ),
        Tool(
            name="azdo_get_work_items",
            description="Get multiple work items by IDs (max 1000 per call). Returns CSV.",
            inputSchema=_schema({
                "ids": {"type": "array", "items": {"type": "integer"}, "description": "Work item IDs"},
                "include_latest_n_comments": _COMMENTS,
            }, required=["ids"])
        ),
        Tool(
            name="azdo_query_work_items",
            description="Query work items by filters. All filters are combined with AND. "
                       "With no filters, every work item of the project is returned (max 1000). Returns CSV.",
            inputSchema=_schema(_FILTERS)
        ),
        Tool(
            name="azdo_query_work_items_by_wiql",
            description="Query work items using WIQL. Returns CSV.",
            inputSchema=_schema({
                "query": {
                    "type": "string",
                    "description": "WIQL query string (e.g., \"SELECT [System.Id] FROM WorkItems "
                                   "WHERE [System.State] = 'Active'\")"
                },
                "include_latest_n_comments": _COMMENTS,
            }, required=["query"])
        ),
        Tool(
            name="azdo_create_work_item",
            description="Create work item. Returns the created item as compact JSON.",
            inputSchema=_schema({
                "work_item_type": {"type": "string", "description": "Type of work item (User Story, Epic, Feature, Bug, etc.)"},
                "title": {"type": "string", "description": "Work item title"},
                **_WORK_ITEM_FIELDS,
                "parent_id": {"type": "integer", "description": "ID of parent work item"},
            }, required=["work_item_type", "title"])
        ),
        Tool(
            name="azdo_update_work_item",
            description="Update work item. Only the given fields are changed.",
            inputSchema=_schema({
                "id": {"type": "integer", "description": "Work item ID to update"},
                "title": {"type": "string", "description": "Work item title"},
                **_WORK_ITEM_FIELDS,
            }, required=["id"])
        ),
        Tool(
            name="azdo_add_comment",
            description="Add a comment to a work item.",
            inputSchema=_schema({
                "work_item_id": {"type": "integer", "description": "Work item ID to add comment to"},
                "text": {"type": "string", "description": "Comment text (supports markdown)"},
            }, required=["work_item_id", "text"])
        ),
        Tool(
            name="azdo_link_work_items",
            description="Link work items.",
            inputSchema=_schema({
                "source_id": {"type": "integer", "description": "Source work item ID"},
                "target_id": {"type": "integer", "description": "Target work item ID"},
                "link_type": {
                    "type": "string",
                    "description": "Link type: \"Parent\", \"Child\", \"Related\", \"Duplicate\", \"Dependency\" "
                                   "or a link type reference name"
                },
            }, required=["source_id", "target_id", "link_type"])
        ),
        # ============================================================================
        # Organization & Project Tools
        # ============================================================================
        Tool(
            name="azdo_list_organizations",
            description="List organizations the current user belongs to.",
            inputSchema=_schema({}, scoped=False)
        ),
        Tool(
            name="azdo_get_current_user",
            description="Get the current user (display name, email).",
            inputSchema=_schema({}, scoped=False)
        ),
        Tool(
            name="azdo_list_projects",
            description="List projects of an organization.",
            inputSchema=_schema({"organization": _ORGANIZATION}, scoped=False)
        ),
        Tool(
            name="azdo_list_work_item_types",
            description="List work item types of a project.",
            inputSchema=_schema({})
        ),
        Tool(
            name="azdo_list_tags",
            description="List work item tags of a project.",
            inputSchema=_schema({})
        ),
        Tool(
            name="azdo_list_area_paths",
            description="List area paths of a project.",
            inputSchema=_schema({
                "parent_path": {"type": "string", "description": "Optional parent area path to list under"},
            })
        ),
        Tool(
            name="azdo_list_iteration_paths",
            description="List iteration paths for a project or team.",
            inputSchema=_schema({
                "team_id": {"type": "string", "description": "Optional team ID or name for team iterations"},
                "timeframe": {
                    "type": "string",
                    "enum": ["current", "past", "future"],
                    "description": "Optional timeframe filter (only applies when team_id is provided)"
                },
            })
        ),
        # ============================================================================
        # Team & Board Tools
        # ============================================================================
        Tool(
            name="azdo_list_teams",
            description="List teams of a project.",
            inputSchema=_schema({})
        ),
        Tool(
            name="azdo_get_team",
            description="Get team details (including default area path).",
            inputSchema=_schema({"team_id": _TEAM_ID}, required=["team_id"])
        ),
        Tool(
            name="azdo_list_team_members",
            description="List team members as CSV rows: display name, unique name.",
            inputSchema=_schema({"team_id": _TEAM_ID}, required=["team_id"])
        ),
        Tool(
            name="azdo_get_team_current_iteration",
            description="Get current iteration/sprint for team as CSV: name,start_date,finish_date.",
            inputSchema=_schema({"team_id": _TEAM_ID}, required=["team_id"])
        ),
        Tool(
            name="azdo_list_team_boards",
            description="List boards of a team.",
            inputSchema=_schema({"team_id": _TEAM_ID}, required=["team_id"])
        ),
        Tool(
            name="azdo_get_team_board",
            description="Get board details (columns, rows, fields).",
            inputSchema=_schema({"team_id": _TEAM_ID, "board_id": _BOARD_ID}, required=["team_id", "board_id"])
        ),
        Tool(
            name="azdo_list_board_columns",
            description="List board columns as CSV: name,item_limit,is_split,column_type.",
            inputSchema=_schema({"team_id": _TEAM_ID, "board_id": _BOARD_ID}, required=["team_id", "board_id"])
        ),
        Tool(
            name="azdo_list_board_rows",
            description="List board rows (swimlanes).",
            inputSchema=_schema({"team_id": _TEAM_ID, "board_id": _BOARD_ID}, required=["team_id", "board_id"])
        ),
    ]
