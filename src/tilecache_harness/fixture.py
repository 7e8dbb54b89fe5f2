# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
import os
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

import requests

from tilecache_harness.clients import ClientRegistry, CredentialSet
from tilecache_harness.config import HarnessConfig
from tilecache_harness.errors import (
    ClientCleanupFailure,
    FixtureStateError,
    ShutdownFailure,
)
from tilecache_harness.filters import RequestFilter
from tilecache_harness.initializers import Initializer, noop
from tilecache_harness.lifecycle import ServiceLifecycle
from tilecache_harness.port_utils import NegotiatedPort, negotiate_port
from tilecache_harness.provisioning import (
    ProvisionedDirectories,
    discard_directories,
    provision_directories,
)
from tilecache_harness.teardown import TeardownCoordinator


@dataclass
class FixtureState:
    """Everything one test run owns; never reused across runs"""

    directories: Optional[ProvisionedDirectories] = None
    clients: ClientRegistry = field(default_factory=ClientRegistry)
    _port: Optional[int] = None

    @property
    def port(self) -> Optional[int]:
        return self._port

    def assign_port(self, port: int) -> None:
        if self._port is not None:
            raise FixtureStateError(
                f"Port already assigned ({self._port}), refusing to assign {port}"
            )
        self._port = port


class TileCacheFixture:
    """A live tile cache service on a private port with private storage.

    Usage:
        with TileCacheFixture(tmp_path) as gwc:
            response = gwc.anonymous().get(gwc.uri)

    ``start`` provisions the directories, negotiates a port and starts the
    service; ``stop`` closes every client handed out and stops the service in
    the background and then deletes the directories. Use ``wait_for_shutdown``
    to block until that is done and surface a ShutdownFailure, or ``close``
    to do both steps and report every failure.
    """

    def __init__(
        self,
        base_dir: Union[str, os.PathLike],
        conf_init: Initializer = noop,
        cache_init: Initializer = noop,
        config: Optional[HarnessConfig] = None,
        filters: Iterable[RequestFilter] = (),
    ):
        self.base_dir = Path(base_dir)
        self.conf_init = conf_init
        self.cache_init = cache_init
        self.config = config or HarnessConfig()
        self.state = FixtureState()
        self.lifecycle = ServiceLifecycle(self.config, filters=filters)
        self._teardown = TeardownCoordinator(
            self.lifecycle, self.state.clients, discard=self._discard_directories
        )
        self._logger = logging.getLogger(self.__class__.__name__)

    def __enter__(self) -> "TileCacheFixture":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    def start(self) -> None:
        if self.state.directories is not None:
            raise FixtureStateError("Fixture has already been started")

        self.state.directories = provision_directories(
            self.base_dir, self.conf_init, self.cache_init
        )
        negotiated: NegotiatedPort = negotiate_port(
            self.config.port_min,
            self.config.port_max,
            host=self.config.host,
            backlog=self.config.accept_queue_size,
        )
        try:
            self.state.assign_port(negotiated.port)
        except FixtureStateError:
            negotiated.close()
            raise
        # from here on the lifecycle owns the socket, including on failure
        self.lifecycle.start(negotiated, self.state.directories)
        self._logger.info(f"Fixture ready at {self.uri}")

    def stop(self) -> Future:
        """Close all clients and stop the service without waiting for it.

        Raises:
            ClientCleanupFailure: If any client failed to close
        """
        self._logger.info("Tearing down fixture")
        return self._teardown.teardown()

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> None:
        """Block until the background stop completes.

        Raises:
            ShutdownFailure: If stopping failed or did not finish in time
        """
        shutdown = self._teardown.shutdown
        if shutdown is None:
            raise FixtureStateError("Fixture has not been stopped")
        try:
            shutdown.result(timeout=timeout)
        except FutureTimeoutError as e:
            raise ShutdownFailure(
                f"Service did not finish stopping within {timeout}s"
            ) from e

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop the fixture and wait for the service to be down.

        Raises:
            ShutdownFailure: If stopping failed; a client cleanup failure from
                the same teardown is in its ``suppressed`` list
            ClientCleanupFailure: If only the clients failed to close
        """
        cleanup_failure: Optional[ClientCleanupFailure] = None
        try:
            self.stop()
        except ClientCleanupFailure as e:
            cleanup_failure = e

        try:
            self.wait_for_shutdown(timeout)
        except ShutdownFailure as e:
            if cleanup_failure is not None:
                e.add_suppressed(cleanup_failure)
            raise
        if cleanup_failure is not None:
            raise cleanup_failure

    def _discard_directories(self) -> List[Exception]:
        if self.state.directories is None:
            return []
        return discard_directories(self.state.directories)

    @property
    def port(self) -> int:
        if self.state.port is None:
            raise FixtureStateError("Fixture has no port, it was never started")
        return self.state.port

    @property
    def uri(self) -> str:
        context = self.config.context_path.rstrip("/")
        return f"{self.config.scheme}://{self.config.host}:{self.port}{context}/"

    def url(self, path: str = "") -> str:
        return self.uri + path.lstrip("/")

    @property
    def directories(self) -> ProvisionedDirectories:
        if self.state.directories is None:
            raise FixtureStateError("Fixture has not been provisioned")
        return self.state.directories

    @property
    def conf_dir(self) -> Path:
        return self.directories.conf_dir

    @property
    def cache_dir(self) -> Path:
        return self.directories.cache_dir

    @property
    def work_dir(self) -> Path:
        return self.directories.work_dir

    @property
    def clients(self) -> ClientRegistry:
        return self.state.clients

    def _require_running(self) -> None:
        if not self.lifecycle.is_running:
            raise FixtureStateError("Service is not running")

    def get_client(self, credentials: Optional[CredentialSet] = None) -> requests.Session:
        self._require_running()
        return self.state.clients.create_client(credentials)

    def admin(self) -> requests.Session:
        self._require_running()
        return self.state.clients.admin()

    def anonymous(self) -> requests.Session:
        self._require_running()
        return self.state.clients.anonymous()

    def admin_bad_password(self) -> requests.Session:
        self._require_running()
        return self.state.clients.admin_bad_password()

    def not_a_user(self) -> requests.Session:
        self._require_running()
        return self.state.clients.not_a_user()
