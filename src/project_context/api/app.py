from __future__ import annotations

from fastapi import FastAPI

from project_context.api.errors import project_context_error_handler
from project_context.api.lifespan import lifespan
from project_context.api.routes.health import router as health_router
from project_context.api.routes.prompts import router as prompts_router
from project_context.api.routes.resources import router as resources_router
from project_context.api.routes.tools import router as tools_router
from project_context.config import package_version
from project_context.errors import ProjectContextError


def create_app() -> FastAPI:
    app = FastAPI(
        title="Project Context API",
        description="Read-only project context: resources, tools and prompts over HTTP.",
        version=package_version(),
        lifespan=lifespan,
    )

    app.add_exception_handler(ProjectContextError, project_context_error_handler)

    app.include_router(health_router, include_in_schema=False)
    app.include_router(resources_router)
    app.include_router(tools_router)
    app.include_router(prompts_router)

    return app
