# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
import threading
import time
from contextlib import asynccontextmanager
from typing import Iterable, Optional

import anyio.to_thread
import uvicorn
from fastapi import FastAPI

from tilecache_harness.config import HarnessConfig
from tilecache_harness.defaults import ServiceDefaults
from tilecache_harness.errors import FixtureStateError, ShutdownFailure, StartupFailure
from tilecache_harness.filters import RequestFilter
from tilecache_harness.port_utils import NegotiatedPort
from tilecache_harness.provisioning import ProvisionedDirectories
from tilecache_harness.service import create_app


class ServiceLifecycle:
    """Starts and stops the embedded tile cache service.

    The service runs in a uvicorn server on a dedicated thread and serves on
    the socket obtained during port negotiation. Once ``start`` is called the
    lifecycle owns that socket and closes it on stop or on a failed start.
    """

    def __init__(
        self,
        config: Optional[HarnessConfig] = None,
        filters: Iterable[RequestFilter] = (),
    ):
        self.config = config or HarnessConfig()
        self.filters = list(filters)
        self._logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.Lock()
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._negotiated: Optional[NegotiatedPort] = None
        self._startup_error: Optional[BaseException] = None
        self._server_error: Optional[BaseException] = None

    @property
    def handle(self) -> Optional[uvicorn.Server]:
        return self._server

    @property
    def port(self) -> Optional[int]:
        return self._negotiated.port if self._negotiated else None

    @property
    def is_running(self) -> bool:
        server, thread = self._server, self._thread
        return (
            server is not None
            and server.started
            and thread is not None
            and thread.is_alive()
        )

    def build_app(self, directories: ProvisionedDirectories) -> FastAPI:
        """Wrap the service in a root app mounted at the deployment path."""
        init_params = {
            ServiceDefaults.conf_dir_param: str(directories.conf_dir.resolve()),
            ServiceDefaults.cache_dir_param: str(directories.cache_dir.resolve()),
        }
        service_app = create_app(
            init_params, work_dir=directories.work_dir, filters=self.filters
        )
        worker_threads = self.config.worker_threads

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            # Fixed size pool for the sync request handlers
            limiter = anyio.to_thread.current_default_thread_limiter()
            limiter.total_tokens = worker_threads
            entered = False
            try:
                async with service_app.router.lifespan_context(service_app):
                    entered = True
                    yield
            except Exception as e:
                if not entered:
                    self._startup_error = e
                raise

        root = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)
        root.mount(self.config.context_path, service_app)
        return root

    def start(
        self, negotiated: NegotiatedPort, directories: ProvisionedDirectories
    ) -> uvicorn.Server:
        """Start the service on the negotiated socket.

        Raises:
            StartupFailure: If the service does not come up. The partially
                started server has been stopped and the socket closed by then;
                a failure while doing so is in ``suppressed``.
        """
        with self._lock:
            if self._server is not None or self._negotiated is not None:
                raise FixtureStateError("Service lifecycle has already been started")
            self._negotiated = negotiated

        self._logger.info(
            f"Starting service on {negotiated.host}:{negotiated.port}"
            f"{self.config.context_path} with {self.config.worker_threads} workers"
        )
        server: Optional[uvicorn.Server] = None
        thread: Optional[threading.Thread] = None
        try:
            app = self.build_app(directories)
            config = uvicorn.Config(
                app,
                host=negotiated.host,
                port=negotiated.port,
                lifespan="on",
                log_config=None,
                backlog=self.config.accept_queue_size,
                timeout_graceful_shutdown=self.config.shutdown_timeout,
            )
            server = uvicorn.Server(config)
            thread = threading.Thread(
                target=self._serve,
                args=(server, negotiated),
                name=f"tilecache-service-{negotiated.port}",
                daemon=True,
            )
            thread.start()
            self._wait_for_startup(server, thread)
        except Exception as e:
            failure = StartupFailure(
                f"Failed to start service on port {negotiated.port}: {e}"
            )
            try:
                self._abort_startup(server, thread)
            except Exception as stop_error:
                self._logger.error(f"Cleanup after failed start also failed: {stop_error}")
                failure.add_suppressed(stop_error)
            raise failure from e

        with self._lock:
            self._server = server
            self._thread = thread
        self._logger.info(f"SUCCESS: service listening on port {negotiated.port}")
        return server

    def stop(self) -> None:
        """Stop the service and release its listener.

        Raises:
            ShutdownFailure: If the server does not exit within the shutdown
                timeout (graceful, then forced) or its thread failed.
        """
        with self._lock:
            server, thread = self._server, self._thread
            self._server = None
            self._thread = None

        if server is None or thread is None:
            self._logger.info("Service is not running, nothing to stop")
            return

        self._logger.info(f"Stopping service on port {self.port}")
        try:
            self._shutdown(server, thread)
        finally:
            if self._negotiated is not None:
                self._negotiated.close()

        if self._server_error is not None:
            raise ShutdownFailure(
                f"Service thread failed: {self._server_error}"
            ) from self._server_error
        self._logger.info(f"Service on port {self.port} stopped")

    def _serve(self, server: uvicorn.Server, negotiated: NegotiatedPort) -> None:
        try:
            server.run(sockets=[negotiated.sock])
        except BaseException as e:  # uvicorn exits via SystemExit on fatal errors
            self._logger.error(f"Service thread terminated with error: {e!r}")
            self._server_error = e

    def _wait_for_startup(
        self, server: uvicorn.Server, thread: threading.Thread, sleep: float = 0.05
    ) -> None:
        timeout = self.config.startup_timeout
        start_time = time.time()
        while time.time() - start_time < timeout:
            if server.started:
                return
            if not thread.is_alive():
                cause = self._startup_error or self._server_error
                raise RuntimeError(
                    f"Service exited during startup: {cause!r}"
                ) from cause
            time.sleep(sleep)
        raise TimeoutError(f"Service did not start within {timeout}s")

    def _abort_startup(
        self, server: Optional[uvicorn.Server], thread: Optional[threading.Thread]
    ) -> None:
        try:
            if server is not None and thread is not None and thread.ident is not None:
                self._shutdown(server, thread)
        finally:
            if self._negotiated is not None:
                self._negotiated.close()

    def _shutdown(self, server: uvicorn.Server, thread: threading.Thread) -> None:
        timeout = self.config.shutdown_timeout
        server.should_exit = True
        thread.join(timeout)
        if thread.is_alive():
            self._logger.warning(
                f"Service did not stop within {timeout}s, forcing exit"
            )
            server.force_exit = True
            thread.join(timeout)
        if thread.is_alive():
            raise ShutdownFailure(f"Service did not stop within {2 * timeout}s")
