# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
import threading
from concurrent.futures import Future
from typing import Callable, List, Optional

from tilecache_harness.clients import ClientRegistry
from tilecache_harness.errors import ClientCleanupFailure, ShutdownFailure
from tilecache_harness.lifecycle import ServiceLifecycle

logger = logging.getLogger(__name__)

Discard = Callable[[], List[Exception]]


def _nothing_to_discard() -> List[Exception]:
    return []


class TeardownCoordinator:
    """Tears a fixture down: service stop in the background, clients in the foreground.

    Stopping the server can take a long time, so it runs on its own thread
    while the clients are closed. Once the server is down the same thread
    runs ``discard`` to delete the per-run storage. The outcome is delivered
    on ``shutdown``: a failure there is a ShutdownFailure, logged as critical
    and re-raised by ``shutdown.result()``, with storage deletion errors in
    its ``suppressed`` list. Client close failures are collected and raised
    together as one ClientCleanupFailure.
    """

    def __init__(
        self,
        lifecycle: ServiceLifecycle,
        registry: ClientRegistry,
        discard: Discard = _nothing_to_discard,
    ):
        self.lifecycle = lifecycle
        self.registry = registry
        self.discard = discard
        self.shutdown: Optional[Future] = None

    def teardown(self) -> Future:
        self.shutdown = self.stop_service_async()

        errors = self.registry.close_all()
        if errors:
            raise ClientCleanupFailure(errors)
        return self.shutdown

    def stop_service_async(self) -> Future:
        future: Future = Future()
        future.set_running_or_notify_cancel()

        def _stop() -> None:
            failure: Optional[ShutdownFailure] = None
            try:
                try:
                    self.lifecycle.stop()
                except ShutdownFailure:
                    raise
                except Exception as e:
                    raise ShutdownFailure(
                        f"Error while shutting down test service: {e}"
                    ) from e
            except ShutdownFailure as e:
                failure = e

            discard_errors = self.discard()
            if discard_errors:
                if failure is None:
                    failure = ShutdownFailure("Error while removing per-run directories")
                for error in discard_errors:
                    failure.add_suppressed(error)

            if failure is not None:
                logger.critical(f"Error while shutting down test service: {failure}")
                future.set_exception(failure)
            else:
                future.set_result(None)

        thread = threading.Thread(
            target=_stop, name="tilecache-service-stop", daemon=True
        )
        thread.start()
        return future
