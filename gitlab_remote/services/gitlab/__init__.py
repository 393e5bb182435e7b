"""
GitLab remote: webhook normalization, permission resolution, OAuth login
and API client glue.

Import the facade from gitlab_remote.services.gitlab.remote.
"""
