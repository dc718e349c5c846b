"""Async HTTP client for the Azure DevOps REST API.

Thin wrapper around ``httpx.AsyncClient`` that knows the four URL scopes the
API uses (project, organization, team, profile) and turns non-success
responses into ``UpstreamError`` with the backend message preserved.
"""
import logging
from typing import Any, Optional

import httpx

from .config import Settings
from .errors import SerializationError, UpstreamError

logger = logging.getLogger("azdo-mcp.client")

API_VERSION = "7.1"
JSON = "application/json"
JSON_PATCH = "application/json-patch+json"
CONTINUATION_HEADER = "x-ms-continuationtoken"


class AzureDevOpsClient:
    """Azure DevOps REST client. Use as an async context manager."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        headers = {"Accept": JSON}
        auth = None
        if settings.access_token:
            headers["Authorization"] = f"Bearer {settings.access_token}"
        elif settings.pat:
            auth = httpx.BasicAuth("", settings.pat)

        self.base_url = settings.base_url.rstrip("/")
        self.vssps_url = settings.vssps_url.rstrip("/")
        self._http = httpx.AsyncClient(
            timeout=settings.timeout,
            headers=headers,
            auth=auth,
            transport=transport,
        )

    async def __aenter__(self) -> "AzureDevOpsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # URL scopes

    def project_url(self, organization: str, project: str, path: str) -> str:
        return f"{self.base_url}/{organization}/{project}/_apis/{path}"

    def org_url(self, organization: str, path: str) -> str:
        return f"{self.base_url}/{organization}/_apis/{path}"

    def team_url(self, organization: str, project: str, team: str, path: str) -> str:
        return f"{self.base_url}/{organization}/{project}/{team}/_apis/{path}"

    def vssps_url_for(self, path: str) -> str:
        return f"{self.vssps_url}/_apis/{path}"

    # Requests

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[dict] = None,
        json: Any = None,
        content_type: str = JSON,
        api_version: str = API_VERSION,
    ) -> httpx.Response:
        """Send a request and fail with ``UpstreamError`` on a non-success status."""
        query = {"api-version": api_version}
        if params:
            query.update({k: v for k, v in params.items() if v is not None})

        logger.debug(f"Request: {method} {url} params={query}")
        if json is not None:
            logger.debug(f"Request body: {json}")

        headers = {"Content-Type": content_type} if json is not None else None
        response = await self._http.request(method, url, params=query, json=json, headers=headers)
        logger.debug(f"Response status: {response.status_code}")

        if response.is_error:
            error_text = response.text
            logger.debug(f"Error response: {error_text}")
            raise UpstreamError(error_text or response.reason_phrase, response.status_code)

        return response

    @staticmethod
    def decode(response: httpx.Response) -> Any:
        """Parse a JSON response body."""
        try:
            return response.json()
        except ValueError as e:
            raise SerializationError(f"JSON parsing failed: {e}") from e

    async def get_json(self, url: str, params: Optional[dict] = None, **kwargs) -> Any:
        response = await self.request("GET", url, params=params, **kwargs)
        return self.decode(response)

    async def send_json(self, method: str, url: str, body: Any, params: Optional[dict] = None, **kwargs) -> Any:
        response = await self.request(method, url, params=params, json=body, **kwargs)
        return self.decode(response)
