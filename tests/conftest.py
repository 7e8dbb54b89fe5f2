# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import logging

import pytest

from tilecache_harness.config import HarnessConfig
from tilecache_harness.logging import configure_uvicorn_logging

EXECUTION_CADENCE_MARKERS = [
    "pre_merge: marks tests to run before merging",
    "nightly: marks tests to run nightly",
]

TEST_SCOPE_MARKERS = [
    "e2e: marks tests as end-to-end tests",
    "integration: marks tests as integration tests",
    "unit: marks tests as unit tests",
]


def pytest_configure(config):
    # Keep this marker list in sync with [tool.pytest.ini_options].markers
    # in pyproject.toml.
    markers = [
        "parallel: marks tests that can run in parallel with pytest-xdist",
        "timeout: test timeout in seconds (pytest-timeout plugin)",
    ]
    markers.extend(EXECUTION_CADENCE_MARKERS + TEST_SCOPE_MARKERS)
    for marker in markers:
        config.addinivalue_line("markers", marker)


LOG_FORMAT = "[TEST] %(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
)
configure_uvicorn_logging(logging.INFO)


@pytest.fixture
def fast_config() -> HarnessConfig:
    """Harness config with short timeouts so failing tests fail quickly."""
    return HarnessConfig(startup_timeout=15.0, shutdown_timeout=5.0)
