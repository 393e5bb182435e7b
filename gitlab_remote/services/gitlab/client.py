import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from gitlab_remote.core.constants import (
    GITLAB_API_PREFIX,
    GITLAB_CI_SERVICE,
    GITLAB_MAX_PAGES,
    GITLAB_PER_PAGE,
    GITLAB_STATUS_CONTEXT,
)
from gitlab_remote.core.http_utils import (
    InstrumentedAsyncClient,
    UpstreamRequestError,
    upstream_errors,
)
from gitlab_remote.models.gitlab_api import GitLabGroup, GitLabProject, GitLabUser
from gitlab_remote.services.gitlab.errors import IdentityFetchError

logger = logging.getLogger(__name__)

_SERVICE_NAME = "GitLab API"

ModelT = TypeVar("ModelT", bound=BaseModel)


class GitLabClient:
    """
    Authenticated client for the GitLab REST API (v4).

    A client is bound to one OAuth access token. Every call opens its own
    short-lived connection, so instances can be created per request and
    shared between concurrent tasks.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        skip_verify: bool = False,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_url = f"{self.base_url}{GITLAB_API_PREFIX}"
        self.token = token
        self.skip_verify = skip_verify
        self.timeout = timeout
        self._transport = transport

    def _get_auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    @asynccontextmanager
    async def _api_client(self) -> AsyncIterator[InstrumentedAsyncClient]:
        kwargs: Dict[str, Any] = {"verify": not self.skip_verify}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        async with InstrumentedAsyncClient(_SERVICE_NAME, timeout=self.timeout, **kwargs) as client:
            yield client

    async def _request(
        self,
        method: str,
        endpoint: str,
        operation: str,
        **kwargs,
    ) -> httpx.Response:
        """
        Send a request and raise UpstreamRequestError on any failure,
        including non-2xx responses.
        """
        async with upstream_errors(_SERVICE_NAME, operation):
            async with self._api_client() as client:
                response = await client.request(
                    method,
                    f"{self.api_url}{endpoint}",
                    headers=self._get_auth_headers(),
                    **kwargs,
                )
                response.raise_for_status()
                return response

    async def _get_model(self, endpoint: str, operation: str, model: Type[ModelT]) -> ModelT:
        response = await self._request("GET", endpoint, operation)
        async with upstream_errors(_SERVICE_NAME, operation):
            return model.model_validate_json(response.content)

    async def _get_paginated(
        self,
        endpoint: str,
        operation: str,
        model: Type[ModelT],
        params: Optional[Dict[str, Any]] = None,
        max_pages: int = GITLAB_MAX_PAGES,
    ) -> List[ModelT]:
        """
        Paginated GET following GitLab's X-Next-Page header.

        Items are validated page by page, so a malformed body surfaces as
        UpstreamRequestError like any other failed call.
        """
        all_items: List[ModelT] = []
        page = 1

        async with upstream_errors(_SERVICE_NAME, operation):
            async with self._api_client() as client:
                while page <= max_pages:
                    request_params = {**(params or {}), "page": page, "per_page": GITLAB_PER_PAGE}
                    response = await client.get(
                        f"{self.api_url}{endpoint}",
                        headers=self._get_auth_headers(),
                        params=request_params,
                    )
                    response.raise_for_status()

                    items = response.json()
                    if not items:
                        break
                    all_items.extend(model.model_validate(item) for item in items)

                    next_page = response.headers.get("x-next-page", "")
                    if not next_page:
                        break
                    page = int(next_page)

        return all_items

    async def current_user(self) -> GitLabUser:
        try:
            return await self._get_model("/user", "fetch current user", GitLabUser)
        except UpstreamRequestError as e:
            raise IdentityFetchError(e.message, status_code=e.status_code) from e

    async def all_groups(self) -> List[GitLabGroup]:
        return await self._get_paginated("/groups", "list groups", GitLabGroup)

    async def get_project(self, project_id: str) -> GitLabProject:
        """
        Fetch a project by numeric id or URL-encoded path.

        Args:
            project_id: "42" or "group%2Fproject"
        """
        return await self._get_model(f"/projects/{project_id}", "fetch project", GitLabProject)

    async def all_projects(self, hide_archives: bool = False) -> List[GitLabProject]:
        """List every project the user is a member of."""
        params: Dict[str, Any] = {"membership": "true", "order_by": "path", "sort": "asc"}
        if hide_archives:
            params["archived"] = "false"
        return await self._get_paginated("/projects", "list projects", GitLabProject, params=params)

    async def search_project_id(self, owner: str, name: str) -> Optional[int]:
        """Find the numeric id of owner/name through the search API."""
        projects = await self._get_paginated(
            "/projects", "search projects", GitLabProject, params={"search": name, "membership": "true"}
        )
        for project in projects:
            if project.path_with_namespace == f"{owner}/{name}":
                return project.id
        logger.info(f"No project matching {owner}/{name} among {len(projects)} search results")
        return None

    async def repo_raw_file(self, project_id: str, ref: str, path: str) -> bytes:
        response = await self._request(
            "GET",
            f"/projects/{project_id}/repository/files/{quote(path, safe='')}/raw",
            "fetch raw file",
            params={"ref": ref},
        )
        return response.content

    async def set_status(
        self,
        project_id: str,
        sha: str,
        state: str,
        description: str,
        ref: str,
        target_url: str,
    ) -> None:
        await self._request(
            "POST",
            f"/projects/{project_id}/statuses/{sha}",
            "set commit status",
            data={
                "state": state,
                "ref": ref,
                "name": GITLAB_STATUS_CONTEXT,
                "description": description,
                "target_url": target_url,
            },
        )

    async def add_drone_service(self, project_id: str, fields: Dict[str, str]) -> None:
        """Enable the CI service integration which delivers push and merge request hooks."""
        await self._request(
            "PUT",
            f"/projects/{project_id}/services/{GITLAB_CI_SERVICE}",
            "register webhook",
            data=fields,
        )

    async def delete_drone_service(self, project_id: str) -> None:
        await self._request(
            "DELETE",
            f"/projects/{project_id}/services/{GITLAB_CI_SERVICE}",
            "unregister webhook",
        )
