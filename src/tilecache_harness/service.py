# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Stub tile cache service started by the harness.

It has no caching logic. It resolves its two named configuration values at
startup, serves an anonymous home page and a couple of admin-only REST
endpoints so the credential personas have something to authenticate against.
"""

import logging
import os
import secrets
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from tilecache_harness.defaults import ServiceDefaults
from tilecache_harness.filters import RequestFilter, RequestFilterException

logger = logging.getLogger(__name__)

security = HTTPBasic(realm=ServiceDefaults.realm, auto_error=False)


def resolve_directory(init_params: Dict[str, str], name: str) -> Path:
    """Resolve a named configuration value to an existing directory."""
    value = init_params.get(name)
    if not value:
        raise RuntimeError(f"Missing configuration value {name}")
    path = Path(value)
    if not path.is_dir():
        raise RuntimeError(f"{name} does not point at a directory: {value}")
    return path


def require_admin(
    credentials: Optional[HTTPBasicCredentials] = Depends(security),
) -> str:
    if credentials is not None:
        username_ok = secrets.compare_digest(
            credentials.username.encode("utf-8"),
            ServiceDefaults.admin_username.encode("utf-8"),
        )
        password_ok = secrets.compare_digest(
            credentials.password.encode("utf-8"),
            ServiceDefaults.admin_password.encode("utf-8"),
        )
        if username_ok and password_ok:
            return credentials.username
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
        headers={"WWW-Authenticate": f'Basic realm="{ServiceDefaults.realm}"'},
    )


def create_app(
    init_params: Dict[str, str],
    work_dir: Optional[os.PathLike] = None,
    filters: Iterable[RequestFilter] = (),
) -> FastAPI:
    """Build the stub service.

    Args:
        init_params: Named configuration values; must contain the
            configuration and cache directory entries
        work_dir: Temporary directory of the service
        filters: Request filters applied to every request, in order
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        conf_dir = resolve_directory(init_params, ServiceDefaults.conf_dir_param)
        cache_dir = resolve_directory(init_params, ServiceDefaults.cache_dir_param)
        app.state.conf_dir = conf_dir
        app.state.cache_dir = cache_dir
        logger.info(
            "Tile cache service configured: conf=%s cache=%s work=%s",
            conf_dir,
            cache_dir,
            app.state.work_dir,
        )
        yield
        logger.info("Tile cache service stopped")

    app = FastAPI(title="GeoWebCache test service", lifespan=lifespan)
    app.state.init_params = dict(init_params)
    app.state.work_dir = Path(work_dir) if work_dir is not None else None
    app.state.filters = list(filters)

    @app.middleware("http")
    async def apply_request_filters(request: Request, call_next):
        for request_filter in request.app.state.filters:
            try:
                await run_in_threadpool(request_filter.apply, request)
            except RequestFilterException as e:
                logger.info("Request rejected by filter %s: %s", request_filter.get_name(), e)
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"error": str(e), "filter": request_filter.get_name()},
                )
        return await call_next(request)

    @app.get("/")
    def home() -> Dict[str, Any]:
        return {"service": "geowebcache", "status": "ok"}

    @app.get("/rest/layers")
    def list_layers(request: Request, user: str = Depends(require_admin)) -> Dict[str, Any]:
        conf_dir: Path = request.app.state.conf_dir
        layers = sorted(p.stem for p in conf_dir.glob("*.xml"))
        return {"layers": layers}

    @app.get("/rest/cache")
    def cache_status(request: Request, user: str = Depends(require_admin)) -> Dict[str, Any]:
        cache_dir: Path = request.app.state.cache_dir
        return {
            "cache_dir": str(cache_dir),
            "entries": sum(1 for _ in cache_dir.iterdir()),
        }

    return app
