"""Bounded batch retrieval of work items and paginated comment collection."""
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

logger = logging.getLogger("azdo-mcp.batching")

# Hard cap on ids retrieved by a single call; the rest is dropped with a warning
MAX_WORK_ITEMS = 1000
# Largest id list the work items endpoint accepts in one request
BATCH_SIZE = 200

# ``want`` value meaning "every comment"
ALL_COMMENTS = -1

FetchPage = Callable[[list[int]], Awaitable[list[Any]]]
FetchCommentPage = Callable[[Optional[str]], Awaitable[tuple[list[Any], Optional[str]]]]


def chunk_ids(ids: Sequence[int], size: int = BATCH_SIZE) -> list[list[int]]:
    """Split ``ids`` into contiguous chunks of at most ``size``, keeping order."""
    return [list(ids[start:start + size]) for start in range(0, len(ids), size)]


async def fetch_in_batches(ids: Sequence[int], fetch_page: FetchPage) -> list[Any]:
    """Fetch records for ``ids`` with one ``fetch_page`` call per chunk.

    Results are concatenated in chunk order. The backend may reorder or omit
    ids inside a chunk; no resequencing is done here. A failing chunk aborts
    the whole fetch.
    """
    if not ids:
        return []

    if len(ids) > MAX_WORK_ITEMS:
        logger.warning(f"Requested {len(ids)} work items, limiting to {MAX_WORK_ITEMS} items")
        ids = ids[:MAX_WORK_ITEMS]

    records: list[Any] = []
    for chunk in chunk_ids(ids):
        records.extend(await fetch_page(chunk))
    return records


async def collect_comments(work_item_id: int, want: int, fetch_page: FetchCommentPage) -> list[Any]:
    """Collect comments page by page until the token runs out or ``want`` is met.

    ``want == -1`` collects every page. The first page is always fetched, and
    the accumulated list is returned as received (not truncated to ``want``).
    """
    comments: list[Any] = []
    token: Optional[str] = None
    pages = 0

    while True:
        page, token = await fetch_page(token)
        pages += 1
        comments.extend(page)

        if not token:
            break
        if want != ALL_COMMENTS and len(comments) >= want:
            break

    logger.debug(f"Collected {len(comments)} comments for work item {work_item_id} in {pages} page(s)")
    return comments
