from gitlab_remote.core.config import GitLabConfig
from gitlab_remote.services.gitlab.remote import GitLabRemote


def get_remote() -> GitLabRemote:
    return GitLabRemote(GitLabConfig.from_settings())
