"""Tests for webhook normalization.

Covers merge request ref construction, push/tag classification, legacy
payload fallbacks, visibility mapping and the error ordering of missing
sub-structures.
"""

import pytest

from gitlab_remote.models.build import BuildEvent
from gitlab_remote.models.hook import HookPayload
from gitlab_remote.services.gitlab.errors import InvalidProjectPath, MissingField, MissingSource
from gitlab_remote.services.gitlab.helpers import get_user_avatar
from gitlab_remote.services.gitlab.normalizer import normalize_hook
from tests.mocks.gitlab import BASE_URL, legacy_push_payload, merge_request_payload, push_payload


def _normalize(payload, form=None):
    return normalize_hook(HookPayload.model_validate(payload), form, BASE_URL)


class TestMergeRequestRef:
    def test_same_project_uses_branch_ref(self):
        result = _normalize(
            merge_request_payload(source_project_id=5, target_project_id=5, source_branch="feature-x")
        )
        assert result.build.ref == "refs/heads/feature-x"
        assert result.build.branch == "feature-x"

    def test_fork_uses_merge_request_ref(self):
        result = _normalize(merge_request_payload(source_project_id=5, target_project_id=9, iid=42))
        assert result.build.ref == "refs/merge-requests/42/head"

    def test_missing_project_ids_count_as_same_project(self):
        result = _normalize(
            merge_request_payload(source_project_id=None, target_project_id=None, source_branch="dev")
        )
        assert result.build.ref == "refs/heads/dev"


class TestMergeRequestBuild:
    def test_build_fields(self):
        result = _normalize(merge_request_payload())
        build = result.build
        assert build.event == BuildEvent.PULL_REQUEST
        assert build.commit == "da1560886d4f094c3e6c9ef40349f7d38b5d27d7"
        assert build.message == "fixed readme"
        assert build.title == "Add feature X"
        assert build.author == "Jane Doe"
        assert build.email == "jane@example.com"
        assert build.avatar == get_user_avatar("jane@example.com")
        assert build.link == f"{BASE_URL}/acme/widget/merge_requests/3"

    def test_no_avatar_without_email(self):
        payload = merge_request_payload()
        payload["object_attributes"]["last_commit"]["author"]["email"] = ""
        result = _normalize(payload)
        assert result.build.email == ""
        assert result.build.avatar is None

    def test_repo_from_target(self):
        result = _normalize(merge_request_payload())
        repo = result.repo
        assert repo.owner == "acme"
        assert repo.name == "widget"
        assert repo.full_name == "acme/widget"
        assert repo.link == f"{BASE_URL}/acme/widget"
        assert repo.clone == f"{BASE_URL}/acme/widget.git"
        assert repo.branch == "main"

    def test_relative_avatar_is_resolved(self):
        result = _normalize(merge_request_payload())
        assert result.repo.avatar == f"{BASE_URL}/uploads/project/avatar/5/widget.png"

    def test_absolute_avatar_passes_through(self):
        payload = merge_request_payload()
        payload["object_attributes"]["target"]["avatar_url"] = "https://cdn.example.com/a.png"
        result = _normalize(payload)
        assert result.repo.avatar == "https://cdn.example.com/a.png"

    def test_empty_default_branch_is_master(self):
        payload = merge_request_payload()
        payload["object_attributes"]["target"]["default_branch"] = ""
        assert _normalize(payload).repo.branch == "master"

    def test_clone_falls_back_to_http_url(self):
        payload = merge_request_payload()
        target = payload["object_attributes"]["target"]
        target["git_http_url"] = ""
        target["http_url"] = f"{BASE_URL}/acme/widget-http.git"
        assert _normalize(payload).repo.clone == f"{BASE_URL}/acme/widget-http.git"

    def test_nested_group_path(self):
        payload = merge_request_payload()
        payload["object_attributes"]["target"]["path_with_namespace"] = "acme/tools/widget"
        repo = _normalize(payload).repo
        assert repo.owner == "acme/tools"
        assert repo.name == "widget"
        assert repo.full_name == "acme/tools/widget"

    def test_path_without_namespace_is_rejected(self):
        payload = merge_request_payload()
        payload["object_attributes"]["target"]["path_with_namespace"] = "widget"
        with pytest.raises(InvalidProjectPath):
            _normalize(payload)


class TestMergeRequestFormFallback:
    def test_uses_form_owner_and_name(self):
        payload = merge_request_payload()
        payload["object_attributes"]["target"]["path_with_namespace"] = ""
        repo = _normalize(payload, form={"owner": "legacy", "name": "app"}).repo
        assert repo.full_name == "legacy/app"

    def test_missing_form_owner(self):
        payload = merge_request_payload()
        payload["object_attributes"]["target"]["path_with_namespace"] = ""
        with pytest.raises(MissingField) as exc_info:
            _normalize(payload, form={"name": "app"})
        assert exc_info.value.field == "owner"


class TestMergeRequestMissingFields:
    def test_missing_object_attributes(self):
        with pytest.raises(MissingField) as exc_info:
            _normalize({"object_kind": "merge_request"})
        assert exc_info.value.field == "object_attributes"

    def test_missing_target_and_source(self):
        with pytest.raises(MissingField) as exc_info:
            _normalize(merge_request_payload(target=None, source=None))
        assert exc_info.value.field == "target, source"

    def test_missing_target(self):
        with pytest.raises(MissingField) as exc_info:
            _normalize(merge_request_payload(target=None))
        assert exc_info.value.field == "target"

    def test_missing_source(self):
        with pytest.raises(MissingField) as exc_info:
            _normalize(merge_request_payload(source=None))
        assert exc_info.value.field == "source"

    def test_missing_last_commit(self):
        with pytest.raises(MissingField) as exc_info:
            _normalize(merge_request_payload(last_commit=None))
        assert exc_info.value.field == "last_commit"

    def test_missing_author(self):
        payload = merge_request_payload()
        del payload["object_attributes"]["last_commit"]["author"]
        with pytest.raises(MissingField) as exc_info:
            _normalize(payload)
        assert exc_info.value.field == "author"
        assert str(exc_info.value) == "author key expected in webhook payload"


class TestPush:
    def test_build_fields(self):
        result = _normalize(push_payload())
        build = result.build
        assert build.event == BuildEvent.PUSH
        assert build.commit == "da1560886d4f094c3e6c9ef40349f7d38b5d27d7"
        assert build.ref == "refs/heads/main"
        assert build.branch == "main"
        assert build.message == "fixed readme"

    def test_author_name_is_pusher_and_email_from_head(self):
        build = _normalize(push_payload()).build
        assert build.author == "jdoe"
        assert build.email == "jane@example.com"
        assert build.avatar == get_user_avatar("jane@example.com")

    def test_head_without_author(self):
        payload = push_payload()
        del payload["commits"][1]["author"]
        build = _normalize(payload).build
        assert build.author == "jdoe"
        assert build.email == ""
        assert build.avatar is None

    def test_head_not_listed(self):
        build = _normalize(push_payload(commits=[])).build
        assert build.message == ""
        assert build.author == "jdoe"
        assert build.avatar is None

    def test_tag_ref_reclassifies_event(self):
        build = _normalize(push_payload(object_kind="tag_push", ref="refs/tags/v1.0.0")).build
        assert build.event == BuildEvent.TAG
        assert build.branch == "v1.0.0"

    def test_tag_kind_with_branch_ref_stays_push(self):
        build = _normalize(push_payload(object_kind="tag_push", ref="refs/heads/main")).build
        assert build.event == BuildEvent.PUSH

    @pytest.mark.parametrize(
        "ref,branch",
        [
            ("refs/heads/main", "main"),
            ("refs/heads/feature/login", "feature/login"),
            ("refs/tags/v2", "v2"),
        ],
    )
    def test_branch_strips_one_prefix(self, ref, branch):
        build = _normalize(push_payload(ref=ref)).build
        assert build.branch == branch
        assert ref.endswith(build.branch)

    def test_repo_from_project(self):
        repo = _normalize(push_payload()).repo
        assert repo.full_name == "acme/widget"
        assert repo.link == f"{BASE_URL}/acme/widget"
        assert repo.clone == f"{BASE_URL}/acme/widget.git"
        assert repo.branch == "main"
        assert repo.avatar is None

    def test_empty_default_branch_is_master(self):
        payload = push_payload()
        payload["project"]["default_branch"] = ""
        assert _normalize(payload).repo.branch == "master"

    def test_null_default_branch_is_master(self):
        payload = push_payload()
        payload["project"]["default_branch"] = None
        assert _normalize(payload).repo.branch == "master"


class TestPushVisibility:
    @pytest.mark.parametrize("level,private", [(0, True), (10, True), (20, False)])
    def test_known_levels(self, level, private):
        payload = push_payload()
        payload["project"]["visibility_level"] = level
        assert _normalize(payload).repo.is_private is private

    def test_unknown_level_keeps_default(self):
        payload = push_payload()
        payload["project"]["visibility_level"] = 30
        assert _normalize(payload).repo.is_private is False

    def test_absent_level_keeps_default(self):
        payload = push_payload()
        del payload["project"]["visibility_level"]
        assert _normalize(payload).repo.is_private is False


class TestLegacyPush:
    def test_repository_with_form(self):
        result = _normalize(legacy_push_payload(), form={"owner": "acme", "name": "widget"})
        repo = result.repo
        assert repo.full_name == "acme/widget"
        assert repo.link == "git@gitlab.test.com:acme/widget.git"
        assert repo.clone == f"{BASE_URL}/acme/widget.git"
        assert repo.branch == "master"
        assert repo.is_private is False
        assert result.build.event == BuildEvent.PUSH

    @pytest.mark.parametrize("level, is_private", [(0, True), (10, True), (20, False)])
    def test_repository_visibility_level(self, level, is_private):
        payload = legacy_push_payload()
        payload["repository"]["visibility_level"] = level
        repo = _normalize(payload, form={"owner": "acme", "name": "widget"}).repo
        assert repo.is_private is is_private

    def test_repository_without_form_name(self):
        with pytest.raises(MissingField) as exc_info:
            _normalize(legacy_push_payload(), form={"owner": "acme"})
        assert exc_info.value.field == "name"

    def test_project_wins_over_repository(self):
        payload = push_payload(repository={"name": "other", "url": "git@elsewhere:x/y.git"})
        repo = _normalize(payload).repo
        assert repo.full_name == "acme/widget"

    def test_neither_project_nor_repository(self):
        payload = push_payload(project=None, repository=None)
        with pytest.raises(MissingSource):
            _normalize(payload)


class TestOtherKinds:
    @pytest.mark.parametrize("kind", ["note", "issue", "pipeline", ""])
    def test_ignored(self, kind):
        assert _normalize({"object_kind": kind}) is None
