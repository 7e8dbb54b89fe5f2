# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""pytest fixtures for tests that need a live tile cache service.

Loaded automatically through the ``pytest11`` entry point. Override
``tilecache_conf_initializer`` or ``tilecache_cache_initializer`` in a test
module or conftest to populate the directories before the service starts.
"""

from typing import Generator

import pytest

from tilecache_harness.config import HarnessConfig
from tilecache_harness.fixture import TileCacheFixture
from tilecache_harness.initializers import Initializer, noop


@pytest.fixture
def tilecache_conf_initializer() -> Initializer:
    return noop


@pytest.fixture
def tilecache_cache_initializer() -> Initializer:
    return noop


@pytest.fixture
def tilecache_config() -> HarnessConfig:
    return HarnessConfig()


@pytest.fixture
def tilecache_fixture(
    tmp_path,
    tilecache_conf_initializer,
    tilecache_cache_initializer,
    tilecache_config,
) -> Generator[TileCacheFixture, None, None]:
    """A started TileCacheFixture, torn down after the test.

    Teardown waits for the service to stop so that a ShutdownFailure fails
    the test instead of going unnoticed; a client cleanup failure from the
    same teardown is attached to it.
    """
    fixture = TileCacheFixture(
        tmp_path / "tilecache",
        conf_init=tilecache_conf_initializer,
        cache_init=tilecache_cache_initializer,
        config=tilecache_config,
    )
    fixture.start()
    try:
        yield fixture
    finally:
        fixture.close(timeout=2 * tilecache_config.shutdown_timeout + 5)
