"""
Webhook normalization.

Turns a parsed GitLab webhook into the repository and build the CI host
understands. Each call is independent: the result depends only on the
payload, the request form values and the instance base URL.

Supported kinds:
- merge_request: pull request builds
- push / tag_push: push and tag builds, from both the "project" (GitLab
  8.5+) and the legacy "repository" payload layouts
"""

import logging
from typing import Mapping, Optional, Tuple, Union

from pydantic import BaseModel

from gitlab_remote.core.constants import (
    DEFAULT_BRANCH,
    REF_HEADS_PREFIX,
    REF_MERGE_REQUEST_TEMPLATE,
    REF_TAGS_PREFIX,
    VISIBILITY_LEVEL_PRIVATE,
)
from gitlab_remote.models.build import Build, BuildEvent
from gitlab_remote.models.hook import (
    HookPayload,
    HookProject,
    HookRepository,
    ObjectKind,
)
from gitlab_remote.models.repo import Repo
from gitlab_remote.services.gitlab.errors import MissingField, MissingSource
from gitlab_remote.services.gitlab.helpers import (
    extract_from_path,
    get_user_avatar,
    resolve_avatar_url,
)

logger = logging.getLogger(__name__)

PushSource = Union[HookProject, HookRepository]


class HookResult(BaseModel):
    repo: Repo
    build: Build


def normalize_hook(
    payload: HookPayload,
    form: Optional[Mapping[str, str]] = None,
    base_url: str = "",
) -> Optional[HookResult]:
    """
    Normalize a webhook payload.

    Args:
        payload: Parsed webhook body
        form: Request parameters; "owner" and "name" identify the repository
              for payloads that do not carry a path with namespace
        base_url: GitLab base URL, used to make relative avatars absolute

    Returns:
        The repository and build, or None for event kinds that do not
        trigger builds. None is not an error; the caller ignores the event.

    Raises:
        MissingField: A sub-structure required for the event kind is absent
        MissingSource: A push has neither a project nor a repository block
        InvalidProjectPath: The path with namespace has no owner
    """
    form = form or {}
    kind = payload.kind

    if kind is ObjectKind.MERGE_REQUEST:
        return _merge_request(payload, form, base_url)
    if kind is ObjectKind.PUSH or kind is ObjectKind.TAG_PUSH:
        return _push(payload, form, base_url)

    logger.debug(f"Ignoring webhook of kind '{payload.object_kind}'")
    return None


def _owner_and_name_from_form(form: Mapping[str, str]) -> Tuple[str, str]:
    owner = form.get("owner", "")
    name = form.get("name", "")
    if not owner:
        raise MissingField("owner")
    if not name:
        raise MissingField("name")
    return owner, name


def _is_private(visibility_level: Optional[int], default: bool) -> bool:
    # Levels other than 0, 10 and 20 are unknown; keep what we have.
    if visibility_level is None:
        return default
    return VISIBILITY_LEVEL_PRIVATE.get(visibility_level, default)


def _merge_request(payload: HookPayload, form: Mapping[str, str], base_url: str) -> HookResult:
    obj = payload.object_attributes
    if obj is None:
        raise MissingField("object_attributes")

    target = obj.target
    source = obj.source
    if target is None and source is None:
        raise MissingField("target, source")
    if target is None:
        raise MissingField("target")
    if source is None:
        raise MissingField("source")

    if target.path_with_namespace:
        owner, name = extract_from_path(target.path_with_namespace)
    else:
        owner, name = _owner_and_name_from_form(form)

    repo = Repo(
        owner=owner,
        name=name,
        link=target.web_url,
        clone=target.git_http_url or target.http_url,
        branch=target.default_branch or DEFAULT_BRANCH,
        avatar=resolve_avatar_url(base_url, target.avatar_url),
    )

    last_commit = obj.last_commit
    if last_commit is None:
        raise MissingField("last_commit")
    author = last_commit.author
    if author is None:
        raise MissingField("author")

    # Commits of a fork are only reachable through the merge request ref.
    if obj.source_project_id == obj.target_project_id:
        ref = f"{REF_HEADS_PREFIX}{obj.source_branch}"
    else:
        ref = REF_MERGE_REQUEST_TEMPLATE.format(iid=obj.iid)

    build = Build(
        event=BuildEvent.PULL_REQUEST,
        commit=last_commit.id,
        ref=ref,
        branch=obj.source_branch,
        message=last_commit.message,
        title=obj.title,
        author=author.name,
        email=author.email,
        avatar=get_user_avatar(author.email) if author.email else None,
        link=obj.url,
    )
    return HookResult(repo=repo, build=build)


def _push_source(payload: HookPayload) -> PushSource:
    if payload.project is not None:
        return payload.project
    if payload.repository is not None:
        return payload.repository
    raise MissingSource()


def _push_repo(source: PushSource, form: Mapping[str, str], base_url: str) -> Repo:
    if isinstance(source, HookProject):
        owner, name = extract_from_path(source.path_with_namespace)
        repo = Repo(
            owner=owner,
            name=name,
            link=source.web_url,
            clone=source.git_http_url,
            branch=source.default_branch or DEFAULT_BRANCH,
            avatar=resolve_avatar_url(base_url, source.avatar_url),
        )
    else:
        owner, name = _owner_and_name_from_form(form)
        repo = Repo(
            owner=owner,
            name=name,
            link=source.url,
            clone=source.git_http_url,
            branch=DEFAULT_BRANCH,
        )

    repo.is_private = _is_private(source.visibility_level, repo.is_private)
    return repo


def _push(payload: HookPayload, form: Mapping[str, str], base_url: str) -> HookResult:
    repo = _push_repo(_push_source(payload), form, base_url)

    head = payload.head()
    build = Build(
        event=BuildEvent.PUSH,
        commit=payload.after,
        ref=payload.ref,
        branch=payload.branch(),
        message=head.message,
        # The pusher is the author; the head commit only contributes an email.
        author=payload.user_name,
    )
    if head.author is not None:
        build.email = head.author.email
        if build.email:
            build.avatar = get_user_avatar(build.email)

    if payload.ref.startswith(REF_TAGS_PREFIX):
        build.event = BuildEvent.TAG

    return HookResult(repo=repo, build=build)
