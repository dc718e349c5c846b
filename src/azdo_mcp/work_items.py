"""Work item operations against the Azure DevOps API.

Composes the HTTP client with the batching and pagination helpers. Nothing
here retries: the first failing request aborts the whole operation.
"""
import logging
from typing import Any, Optional, Sequence

from . import batching
from .client import CONTINUATION_HEADER, JSON_PATCH, AzureDevOpsClient
from .errors import UpstreamError
from .models import Comment, FilterSpec, WorkItem
from .query import build_wiql

logger = logging.getLogger("azdo-mcp.work_items")

COMMENTS_API_VERSION = "7.1-preview.3"
PARENT_LINK_TYPE = "System.LinkTypes.Hierarchy-Reverse"


async def get_comments(
    client: AzureDevOpsClient,
    organization: str,
    project: str,
    work_item_id: int,
    n: int,
) -> list[Comment]:
    """Get the latest ``n`` comments (newest first) of a work item; -1 for all."""
    url = client.project_url(organization, project, f"wit/workitems/{work_item_id}/comments")

    async def fetch_page(token: Optional[str]) -> tuple[list[Comment], Optional[str]]:
        params: dict[str, Any] = {"order": "desc"}
        if n > 0:
            params["$top"] = n
        if token:
            params["continuationToken"] = token
        response = await client.request("GET", url, params=params, api_version=COMMENTS_API_VERSION)
        data = client.decode(response)
        comments = [Comment.model_validate(c) for c in data.get("comments", [])]
        return comments, response.headers.get(CONTINUATION_HEADER)

    return await batching.collect_comments(work_item_id, n, fetch_page)


async def get_work_items(
    client: AzureDevOpsClient,
    organization: str,
    project: str,
    ids: Sequence[int],
    include_latest_n_comments: Optional[int] = None,
) -> list[WorkItem]:
    """Fetch work items by id in batches, optionally attaching their comments."""
    url = client.project_url(organization, project, "wit/workitems")

    async def fetch_page(chunk: list[int]) -> list[WorkItem]:
        data = await client.get_json(url, params={"ids": ",".join(str(i) for i in chunk)})
        return [WorkItem.model_validate(item) for item in data.get("value", [])]

    work_items = await batching.fetch_in_batches(ids, fetch_page)

    if include_latest_n_comments is not None:
        for work_item in work_items:
            work_item.comments = await get_comments(
                client, organization, project, work_item.id, include_latest_n_comments
            )

    return work_items


async def get_work_item(
    client: AzureDevOpsClient,
    organization: str,
    project: str,
    work_item_id: int,
    include_latest_n_comments: Optional[int] = None,
) -> WorkItem:
    items = await get_work_items(client, organization, project, [work_item_id], include_latest_n_comments)
    if not items:
        raise UpstreamError(f"Work item {work_item_id} not found")
    return items[0]


async def run_wiql(client: AzureDevOpsClient, organization: str, project: str, query: str) -> list[int]:
    """Execute a WIQL query and return the matching ids in result order."""
    url = client.project_url(organization, project, "wit/wiql")
    data = await client.send_json("POST", url, {"query": query})
    return [ref["id"] for ref in data.get("workItems", [])]


async def query_work_items(
    client: AzureDevOpsClient,
    organization: str,
    project: str,
    query: str,
    include_latest_n_comments: Optional[int] = None,
) -> list[WorkItem]:
    ids = await run_wiql(client, organization, project, query)
    logger.info(f"WIQL query matched {len(ids)} work items")
    if not ids:
        return []
    return await get_work_items(client, organization, project, ids, include_latest_n_comments)


async def query_work_items_by_filter(
    client: AzureDevOpsClient,
    organization: str,
    project: str,
    spec: FilterSpec,
    include_latest_n_comments: Optional[int] = None,
) -> list[WorkItem]:
    query = build_wiql(spec, project)
    logger.debug(f"Executing WIQL query: {query}")
    return await query_work_items(client, organization, project, query, include_latest_n_comments)


def _patch_operations(fields: dict[str, Any]) -> list[dict[str, Any]]:
    return [{"op": "add", "path": f"/fields/{name}", "value": value} for name, value in fields.items()]


def _relation_operation(client: AzureDevOpsClient, organization: str, link_type: str, target_id: int) -> dict:
    return {
        "op": "add",
        "path": "/relations/-",
        "value": {
            "rel": link_type,
            "url": client.org_url(organization, f"wit/workitems/{target_id}"),
        },
    }


async def create_work_item(
    client: AzureDevOpsClient,
    organization: str,
    project: str,
    work_item_type: str,
    fields: dict[str, Any],
    parent_id: Optional[int] = None,
) -> WorkItem:
    url = client.project_url(organization, project, f"wit/workitems/${work_item_type}")
    operations = _patch_operations(fields)
    if parent_id is not None:
        operations.append(_relation_operation(client, organization, PARENT_LINK_TYPE, parent_id))
    data = await client.send_json("POST", url, operations, content_type=JSON_PATCH)
    return WorkItem.model_validate(data)


async def update_work_item(
    client: AzureDevOpsClient,
    organization: str,
    project: str,
    work_item_id: int,
    fields: dict[str, Any],
) -> WorkItem:
    url = client.project_url(organization, project, f"wit/workitems/{work_item_id}")
    data = await client.send_json("PATCH", url, _patch_operations(fields), content_type=JSON_PATCH)
    return WorkItem.model_validate(data)


async def add_comment(
    client: AzureDevOpsClient,
    organization: str,
    project: str,
    work_item_id: int,
    text: str,
) -> dict:
    url = client.project_url(organization, project, f"wit/workitems/{work_item_id}/comments")
    return await client.send_json("POST", url, {"text": text}, api_version=COMMENTS_API_VERSION)


async def link_work_items(
    client: AzureDevOpsClient,
    organization: str,
    project: str,
    source_id: int,
    target_id: int,
    link_type: str,
) -> dict:
    """Add a relation of ``link_type`` from ``source_id`` to ``target_id``."""
    url = client.project_url(organization, project, f"wit/workitems/{source_id}")
    operations = [_relation_operation(client, organization, link_type, target_id)]
    return await client.send_json("PATCH", url, operations, content_type=JSON_PATCH)
