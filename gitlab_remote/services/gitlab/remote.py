import logging
from typing import Callable, List, Mapping, Optional
from urllib.parse import parse_qs, urlsplit

from gitlab_remote.core.config import GitLabConfig
from gitlab_remote.core.constants import (
    CLONE_MODE_OAUTH,
    HOOK_KIND_OTHER,
    NETRC_OAUTH_LOGIN,
    NETRC_TOKEN_LOGIN,
)
from gitlab_remote.core.http_utils import UpstreamRequestError
from gitlab_remote.core.metrics import commit_status_failures_total, hooks_received_total
from gitlab_remote.core.security import create_hook_token
from gitlab_remote.models.build import Build
from gitlab_remote.models.hook import branch_from_ref
from gitlab_remote.models.netrc import Netrc
from gitlab_remote.models.perm import Perm
from gitlab_remote.models.repo import Repo, RepoLite
from gitlab_remote.models.user import User
from gitlab_remote.services.gitlab.client import GitLabClient
from gitlab_remote.services.gitlab.errors import RemoteError
from gitlab_remote.services.gitlab.helpers import extract_from_path, ns, resolve_avatar_url
from gitlab_remote.services.gitlab.hook_parser import parse_hook
from gitlab_remote.services.gitlab.login import LoginOrchestrator, LoginResult
from gitlab_remote.services.gitlab.normalizer import HookResult, normalize_hook
from gitlab_remote.services.gitlab.permissions import resolve_permission
from gitlab_remote.services.gitlab.status import get_desc, get_status
from gitlab_remote.services.oauth import OAuthClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], GitLabClient]


class GitLabRemote:
    """
    GitLab implementation of the CI host's remote interface.

    Holds configuration only. Every method works on the token of the user
    it is given and keeps nothing between calls.
    """

    def __init__(
        self,
        config: GitLabConfig,
        client_factory: Optional[ClientFactory] = None,
        oauth_client: Optional[OAuthClient] = None,
    ):
        self.config = config
        self.base_url = config.url.rstrip("/")
        self.client_factory = client_factory or self._default_client
        self.login_orchestrator = LoginOrchestrator(
            config,
            oauth_client=oauth_client,
            client_factory=self.client_factory,
        )

    def _default_client(self, token: str) -> GitLabClient:
        return GitLabClient(
            self.base_url,
            token,
            skip_verify=self.config.skip_verify,
            timeout=self.config.timeout,
        )

    async def _project_id(self, client: GitLabClient, owner: str, name: str) -> str:
        if not self.config.search:
            return ns(owner, name)

        project_id = await client.search_project_id(owner, name)
        if project_id is None:
            raise UpstreamRequestError(f"Project {owner}/{name} not found", status_code=404)
        return str(project_id)

    async def login(self, redirect_uri: str, code: Optional[str] = None) -> LoginResult:
        return await self.login_orchestrator.login(redirect_uri, code)

    async def auth(self, token: str) -> str:
        """Return the username owning an access token."""
        login = await self.client_factory(token).current_user()
        return login.username

    async def repo(self, user: User, owner: str, name: str) -> Repo:
        client = self.client_factory(user.token)
        project = await client.get_project(await self._project_id(client, owner, name))

        if project.path_with_namespace:
            owner, name = extract_from_path(project.path_with_namespace)

        return Repo(
            owner=owner,
            name=name,
            link=project.web_url,
            clone=project.http_url_to_repo,
            branch=project.default_branch or "",
            avatar=resolve_avatar_url(self.base_url, project.avatar_url),
            is_private=self.config.private_mode or not project.is_public,
        )

    async def repos(self, user: User) -> List[RepoLite]:
        client = self.client_factory(user.token)
        projects = await client.all_projects(self.config.hide_archives)

        repos = []
        for project in projects:
            owner, name = extract_from_path(project.path_with_namespace)
            repos.append(
                RepoLite(
                    owner=owner,
                    name=name,
                    full_name=project.path_with_namespace,
                    avatar=resolve_avatar_url(self.base_url, project.avatar_url),
                )
            )
        return repos

    async def perm(self, user: User, owner: str, name: str) -> Perm:
        client = self.client_factory(user.token)
        project = await client.get_project(await self._project_id(client, owner, name))
        return resolve_permission(project, user.login)

    async def file(self, user: User, repo: Repo, build: Build, path: str) -> bytes:
        """Fetch a file of the repository at the build's commit."""
        client = self.client_factory(user.token)
        project_id = await self._project_id(client, repo.owner, repo.name)
        return await client.repo_raw_file(project_id, build.commit, path)

    async def status(self, user: User, repo: Repo, build: Build, status: str, link: str) -> None:
        """
        Publish the build status on the commit.

        Best effort: older GitLab versions have no commit status API, so
        failures are logged and dropped.
        """
        client = self.client_factory(user.token)
        try:
            await client.set_status(
                ns(repo.owner, repo.name),
                build.commit,
                get_status(status),
                get_desc(status),
                branch_from_ref(build.ref),
                link,
            )
        except UpstreamRequestError as e:
            commit_status_failures_total.inc()
            logger.warning(f"Could not set status of {repo.full_name}@{build.commit}: {e.message}")

    def netrc(self, user: User, repo: Repo, repo_secret: str) -> Netrc:
        """
        Clone credentials for a repository.

        In "oauth" clone mode builds clone with the user's own token; in
        "token" mode with a hook token signed by the repository secret.
        """
        machine = urlsplit(self.base_url).hostname or ""
        if self.config.clone_mode == CLONE_MODE_OAUTH:
            return Netrc(machine=machine, login=NETRC_OAUTH_LOGIN, password=user.token)
        return Netrc(
            machine=machine,
            login=NETRC_TOKEN_LOGIN,
            password=create_hook_token(repo.full_name, repo_secret),
        )

    async def activate(self, user: User, repo: Repo, link: str) -> None:
        """
        Register the CI service integration on the project.

        Args:
            link: Hook URL of the CI host, carrying its token in the
                  "access_token" query parameter
        """
        client = self.client_factory(user.token)
        project_id = await self._project_id(client, repo.owner, repo.name)

        uri = urlsplit(link)
        fields = {
            "token": parse_qs(uri.query).get("access_token", [""])[0],
            "drone_url": f"{uri.scheme}://{uri.netloc}",
            "enable_ssl_verification": str(not self.config.skip_verify).lower(),
        }
        await client.add_drone_service(project_id, fields)
        logger.info(f"Activated {repo.full_name}")

    async def deactivate(self, user: User, repo: Repo) -> None:
        client = self.client_factory(user.token)
        project_id = await self._project_id(client, repo.owner, repo.name)
        await client.delete_drone_service(project_id)
        logger.info(f"Deactivated {repo.full_name}")

    def hook(self, raw: bytes, form: Optional[Mapping[str, str]] = None) -> Optional[HookResult]:
        """
        Parse and normalize an inbound webhook.

        Returns None for events that do not trigger builds.
        """
        try:
            payload = parse_hook(raw)
            result = normalize_hook(payload, form, self.base_url)
        except RemoteError as e:
            hooks_received_total.labels(kind=HOOK_KIND_OTHER, result="error").inc()
            logger.warning(f"Rejected webhook: {e.message}")
            raise

        # Label values must stay a closed set: object_kind comes from the request body.
        kind = payload.kind.value if payload.kind is not None else HOOK_KIND_OTHER
        hooks_received_total.labels(kind=kind, result="ignored" if result is None else "accepted").inc()
        return result
