"""MCP tool handlers for Azure DevOps.

All handlers follow a consistent pattern:
- Accept: arguments dict (scope defaults already applied) and an AzureDevOpsClient
- Return: list[TextContent] with a single compact text payload
- Use formatters from formatters module for consistent output
- Log all operations for debugging

Work item reads go through the simplifier and the CSV projector; the small
lookups return names only.
"""
from typing import Any, Optional
import logging

from mcp.types import TextContent

from . import formatters
from . import teams
from . import work_items
from .client import AzureDevOpsClient
from .config import Settings
from .errors import InvalidInputError
from .models import (
    AddCommentArgs,
    CreateWorkItemArgs,
    GetWorkItemArgs,
    GetWorkItemsArgs,
    LinkWorkItemsArgs,
    QueryWorkItemsArgs,
    ScopedArgs,
    UpdateWorkItemArgs,
    WiqlQueryArgs,
    WorkItem,
)
from .simplify import simplify_work_item_json

logger = logging.getLogger("azdo-mcp.handlers")

NO_WORK_ITEMS = "No work items found"
TIMEFRAMES = ("current", "past", "future")
CLASSIFICATION_DEPTH = 10

# Tools that take neither organization nor project
UNSCOPED_TOOLS = {"azdo_list_organizations", "azdo_get_current_user"}
# Tools that take an organization only
ORGANIZATION_TOOLS = {"azdo_list_projects"}


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


def _names(data: dict, key: str = "name") -> list[str]:
    return [item.get(key) or "" for item in data.get("value", [])]


def _simplified(items: list[WorkItem]) -> list[dict]:
    return [simplify_work_item_json(item.to_json()) for item in items]


def apply_scope_defaults(tool_name: str, arguments: Optional[dict], settings: Settings) -> dict:
    """Fill organization and project from settings where the caller left them out.

    Args:
        tool_name: Name of the tool being called
        arguments: Tool arguments (may be None)
        settings: Server settings holding the default scope

    Returns:
        Arguments with organization/project defaulted if applicable
    """
    arguments = dict(arguments or {})

    if tool_name in UNSCOPED_TOOLS:
        return arguments

    if not arguments.get("organization") and settings.organization:
        arguments["organization"] = settings.organization
        logger.debug(f"Using configured organization: {settings.organization}")

    if tool_name in ORGANIZATION_TOOLS:
        return arguments

    if not arguments.get("project") and settings.project:
        arguments["project"] = settings.project
        logger.debug(f"Using configured project: {settings.project}")

    return arguments


def _require(arguments: dict, key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"Missing required argument: {key}")
    return value.strip()


# ============================================================================
# Work Item Handlers
# ============================================================================

async def handle_get_work_item(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    """Get one work item, projected to CSV."""
    args = GetWorkItemArgs.model_validate(arguments)
    item = await work_items.get_work_item(
        client, args.organization, args.project, args.id, args.include_latest_n_comments
    )
    logger.info(f"Successfully retrieved work item {args.id}")
    return _text(formatters.work_items_to_csv(simplify_work_item_json(item.to_json())))


async def handle_get_work_items(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    args = GetWorkItemsArgs.model_validate(arguments)
    items = await work_items.get_work_items(
        client, args.organization, args.project, args.ids, args.include_latest_n_comments
    )
    logger.info(f"Successfully retrieved {len(items)} work items")
    if not items:
        return _text(NO_WORK_ITEMS)
    return _text(formatters.work_items_to_csv(_simplified(items)))


async def handle_query_work_items(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    """Query work items by structured filters.

    Every filter narrows the result (AND). With no filter at all, the whole
    project is returned, capped at the batch fetch limit.
    """
    args = QueryWorkItemsArgs.model_validate(arguments)
    items = await work_items.query_work_items_by_filter(
        client, args.organization, args.project, args.filter_spec(), args.include_latest_n_comments
    )
    logger.info(f"Query returned {len(items)} work items")
    if not items:
        return _text(NO_WORK_ITEMS)
    return _text(formatters.work_items_to_csv(_simplified(items)))


async def handle_query_work_items_by_wiql(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    args = WiqlQueryArgs.model_validate(arguments)
    items = await work_items.query_work_items(
        client, args.organization, args.project, args.query, args.include_latest_n_comments
    )
    logger.info(f"WIQL query returned {len(items)} work items")
    return _text(formatters.work_items_to_csv(_simplified(items)))


async def handle_create_work_item(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    args = CreateWorkItemArgs.model_validate(arguments)
    item = await work_items.create_work_item(
        client, args.organization, args.project, args.work_item_type, args.field_map(), args.parent_id
    )
    logger.info(f"Successfully created {args.work_item_type} {item.id}: {args.title}")
    return _text(formatters.to_compact_json(simplify_work_item_json(item.to_json())))


async def handle_update_work_item(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    args = UpdateWorkItemArgs.model_validate(arguments)
    fields = args.field_map()
    if not fields:
        raise InvalidInputError("No fields to update")
    item = await work_items.update_work_item(client, args.organization, args.project, args.id, fields)
    logger.info(f"Successfully updated work item {args.id}: {', '.join(fields)}")
    return _text(formatters.to_compact_json(simplify_work_item_json(item.to_json())))


async def handle_add_comment(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    args = AddCommentArgs.model_validate(arguments)
    comment = await work_items.add_comment(client, args.organization, args.project, args.work_item_id, args.text)
    logger.info(f"Successfully added comment to work item {args.work_item_id}")
    return _text(formatters.to_compact_json(simplify_work_item_json(comment)))


async def handle_link_work_items(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    args = LinkWorkItemsArgs.model_validate(arguments)
    result = await work_items.link_work_items(
        client, args.organization, args.project, args.source_id, args.target_id, args.link_type_reference()
    )
    logger.info(f"Successfully linked work item {args.source_id} -> {args.target_id} ({args.link_type})")
    return _text(formatters.to_compact_json(simplify_work_item_json(result)))


# ============================================================================
# Organization & Project Handlers
# ============================================================================

async def _get_profile(client: AzureDevOpsClient) -> dict:
    return await client.get_json(client.vssps_url_for("profile/profiles/me"))


async def handle_list_organizations(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    """List organizations of the authenticated user (profile lookup, then accounts)."""
    profile = await _get_profile(client)
    data = await client.get_json(client.vssps_url_for("accounts"), params={"memberId": profile.get("id")})
    names = _names(data, key="accountName")
    logger.info(f"Successfully listed {len(names)} organizations")
    return _text(formatters.to_compact_json(names))


async def handle_get_current_user(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    profile = await _get_profile(client)
    return _text(formatters.rows_to_csv([[
        profile.get("displayName", ""),
        profile.get("emailAddress", ""),
    ]]).rstrip("\n"))


async def handle_list_projects(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    organization = _require(arguments, "organization")
    data = await client.get_json(client.org_url(organization, "projects"))
    names = _names(data)
    logger.info(f"Successfully listed {len(names)} projects in {organization}")
    return _text(formatters.to_compact_json(names))


async def handle_list_work_item_types(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    scope = ScopedArgs.model_validate(arguments)
    data = await client.get_json(client.project_url(scope.organization, scope.project, "wit/workitemtypes"))
    return _text(formatters.to_compact_json(_names(data)))


async def handle_list_tags(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    scope = ScopedArgs.model_validate(arguments)
    data = await client.get_json(client.project_url(scope.organization, scope.project, "wit/tags"))
    return _text(formatters.to_compact_json(_names(data)))


async def _classification_paths(
    client: AzureDevOpsClient,
    scope: ScopedArgs,
    group: str,
    parent_path: Optional[str] = None,
) -> list[str]:
    path = f"wit/classificationnodes/{group}"
    if parent_path:
        path = f"{path}/{parent_path}"
    url = client.project_url(scope.organization, scope.project, path)
    root = await client.get_json(url, params={"$depth": CLASSIFICATION_DEPTH})
    return formatters.collect_node_paths(root)


async def handle_list_area_paths(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    scope = ScopedArgs.model_validate(arguments)
    paths = await _classification_paths(client, scope, "areas", arguments.get("parent_path"))
    logger.info(f"Successfully listed {len(paths)} area paths")
    return _text(",".join(paths))


async def handle_list_iteration_paths(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    """List iteration paths.

    Without a team, the project's iteration classification tree is flattened
    into comma-joined paths. With a team, each of the team's iterations is
    rendered as name,timeframe,start,finish, optionally filtered by timeframe.
    """
    scope = ScopedArgs.model_validate(arguments)
    timeframe = arguments.get("timeframe")
    if timeframe is not None and timeframe not in TIMEFRAMES:
        raise InvalidInputError(
            f"Invalid timeframe '{timeframe}'. Valid values are: 'current', 'past', 'future'"
        )

    team_id = arguments.get("team_id")
    if not team_id:
        paths = await _classification_paths(client, scope, "iterations")
        return _text(",".join(paths))

    iterations = await teams.get_team_iterations(client, scope.organization, scope.project, team_id)
    if timeframe is not None:
        iterations = [
            it for it in iterations
            if (it.attributes.time_frame or "").lower() == timeframe
        ]
    if not iterations:
        return _text("No iterations found")

    return _text(",".join(
        formatters.format_iteration_with_timeframe(it.model_dump(by_alias=True)) for it in iterations
    ))


# ============================================================================
# Team & Board Handlers
# ============================================================================

def _team_api(client: AzureDevOpsClient, scope: ScopedArgs, suffix: str = "") -> str:
    return client.org_url(scope.organization, f"projects/{scope.project}/teams{suffix}")


async def handle_list_teams(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    scope = ScopedArgs.model_validate(arguments)
    data = await client.get_json(_team_api(client, scope))
    names = _names(data)
    logger.info(f"Successfully listed {len(names)} teams in {scope.project}")
    return _text(formatters.to_compact_json(names))


async def handle_get_team(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    scope = ScopedArgs.model_validate(arguments)
    team_id = _require(arguments, "team_id")
    team = await client.get_json(_team_api(client, scope, f"/{team_id}"))
    return _text(formatters.to_compact_json(team))


async def handle_list_team_members(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    scope = ScopedArgs.model_validate(arguments)
    team_id = _require(arguments, "team_id")
    data = await client.get_json(_team_api(client, scope, f"/{team_id}/members"))
    rows = []
    for member in data.get("value", []):
        identity = member.get("identity") or {}
        rows.append([identity.get("displayName", ""), identity.get("uniqueName", "")])
    logger.info(f"Successfully listed {len(rows)} members of team {team_id}")
    return _text(formatters.rows_to_csv(rows).rstrip("\n"))


async def handle_get_team_current_iteration(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    scope = ScopedArgs.model_validate(arguments)
    team_id = _require(arguments, "team_id")
    iteration = await teams.get_team_current_iteration(client, scope.organization, scope.project, team_id)
    if iteration is None:
        return _text("No current iteration found")
    return _text(formatters.format_iteration(iteration.model_dump(by_alias=True)))


def _board_url(client: AzureDevOpsClient, arguments: dict, suffix: str = "") -> str:
    scope = ScopedArgs.model_validate(arguments)
    team_id = _require(arguments, "team_id")
    return client.team_url(scope.organization, scope.project, team_id, f"work/boards{suffix}")


async def handle_list_team_boards(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    data = await client.get_json(_board_url(client, arguments))
    return _text(formatters.to_compact_json(_names(data)))


async def handle_get_team_board(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    board_id = _require(arguments, "board_id")
    board = await client.get_json(_board_url(client, arguments, f"/{board_id}"))
    return _text(formatters.to_compact_json(board))


async def handle_list_board_columns(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    board_id = _require(arguments, "board_id")
    data = await client.get_json(_board_url(client, arguments, f"/{board_id}/columns"))
    return _text(formatters.board_columns_to_csv(data.get("value", [])))


async def handle_list_board_rows(arguments: dict, client: AzureDevOpsClient) -> list[TextContent]:
    board_id = _require(arguments, "board_id")
    data = await client.get_json(_board_url(client, arguments, f"/{board_id}/rows"))
    return _text(formatters.to_compact_json(_names(data)))


HANDLERS: dict[str, Any] = {
    # Work items
    "azdo_get_work_item": handle_get_work_item,
    "azdo_get_work_items": handle_get_work_items,
    "azdo_query_work_items": handle_query_work_items,
    "azdo_query_work_items_by_wiql": handle_query_work_items_by_wiql,
    "azdo_create_work_item": handle_create_work_item,
    "azdo_update_work_item": handle_update_work_item,
    "azdo_add_comment": handle_add_comment,
    "azdo_link_work_items": handle_link_work_items,
    # Organizations, projects, lookups
    "azdo_list_organizations": handle_list_organizations,
    "azdo_get_current_user": handle_get_current_user,
    "azdo_list_projects": handle_list_projects,
    "azdo_list_work_item_types": handle_list_work_item_types,
    "azdo_list_tags": handle_list_tags,
    "azdo_list_area_paths": handle_list_area_paths,
    "azdo_list_iteration_paths": handle_list_iteration_paths,
    # Teams and boards
    "azdo_list_teams": handle_list_teams,
    "azdo_get_team": handle_get_team,
    "azdo_list_team_members": handle_list_team_members,
    "azdo_get_team_current_iteration": handle_get_team_current_iteration,
    "azdo_list_team_boards": handle_list_team_boards,
    "azdo_get_team_board": handle_get_team_board,
    "azdo_list_board_columns": handle_list_board_columns,
    "azdo_list_board_rows": handle_list_board_rows,
}
