from fastapi import FastAPI

from gitlab_remote.api import health
from gitlab_remote.api.v1.endpoints import hook, login
from gitlab_remote.core.config import settings
from gitlab_remote.core.metrics import PrometheusMiddleware, metrics_endpoint

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
    GitLab remote of the CI server.

    ## Features
    * **Webhooks**: Normalize merge request, push and tag push events into builds.
    * **Login**: OAuth login with optional group membership gating.
    """,
    version="0.1.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
)

app.add_middleware(PrometheusMiddleware)
app.add_route("/metrics", metrics_endpoint, methods=["GET"], include_in_schema=False)

app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(hook.router, prefix=f"{settings.API_V1_STR}", tags=["hook"])
app.include_router(login.router, prefix=f"{settings.API_V1_STR}", tags=["auth"])
