"""
ASGI application.

Mounts every configured repository under ``/repository/{name}`` and forwards
requests to its handler. Handlers are synchronous and run in the worker
thread pool.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request, Response
from starlette.concurrency import run_in_threadpool

from .handlers.base import HandlerRequest, HandlerResponse, dispatch, method_not_allowed, not_found
from .repositories import Repository, build_repositories
from .routes import match_route
from .settings import Settings, create_settings_from_env
from .transport import HttpTransport

__all__ = ["create_app", "MOUNT_PREFIX"]

logger = logging.getLogger(__name__)

MOUNT_PREFIX = "/repository"

_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


def _repository_url(settings: Settings, request: Request, name: str) -> str:
    root = settings.public_url or str(request.base_url).rstrip("/")
    return f"{root}{MOUNT_PREFIX}/{name}"


def _to_response(result: HandlerResponse, method: str) -> Response:
    headers = dict(result.headers)
    body = result.body
    if method == "HEAD":
        headers["Content-Length"] = str(len(body))
        body = b""
    return Response(content=body, status_code=result.status, headers=headers,
                    media_type=result.content_type)


def create_app(settings: Optional[Settings] = None,
               repositories: Optional[Dict[str, Repository]] = None,
               transport: Optional[HttpTransport] = None) -> FastAPI:
    """
    Build the registry application.

    Args:
        settings: Registry settings (default: from environment)
        repositories: Pre-built repositories keyed by name (default: built
            from settings)
        transport: Upstream transport used by proxy repositories built here
    """
    settings = settings or create_settings_from_env()
    if repositories is None:
        repositories = build_repositories(settings, transport)

    app = FastAPI(title="Galaxy Registry", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.settings = settings
    app.state.repositories = repositories

    @app.get("/health")
    def health():
        return {"status": "ok", "repositories": sorted(repositories)}

    @app.api_route(MOUNT_PREFIX + "/{repo_name}/{path:path}", methods=_METHODS)
    async def repository_endpoint(repo_name: str, path: str, request: Request) -> Response:
        method = request.method.upper()
        repository = repositories.get(repo_name)
        if repository is None:
            return _to_response(not_found(f"Repository {repo_name} not found"), method)

        relative_path = "/" + path
        match = match_route(repository.routes, method, relative_path)
        if match is None:
            return _to_response(not_found(f"No route for {relative_path}"), method)
        if not match.allows(method):
            return _to_response(method_not_allowed(method, repository.allowed_methods), method)

        handler_request = HandlerRequest(
            method=method,
            path=relative_path,
            tokens=match.tokens,
            query=dict(request.query_params),
            query_string=request.url.query,
            headers=dict(request.headers),
            body=await request.body() if method in ("POST", "PUT") else b"",
            base_url=_repository_url(settings, request, repo_name),
        )
        result = await run_in_threadpool(dispatch, repository.handler, handler_request)
        logger.debug(f"{method} {MOUNT_PREFIX}/{repo_name}{relative_path} -> {result.status}")
        return _to_response(result, method)

    return app
