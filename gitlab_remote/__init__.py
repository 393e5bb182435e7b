"""GitLab remote for the CI platform."""
