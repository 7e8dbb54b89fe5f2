# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import logging

import pytest
from pydantic import ValidationError

from tilecache_harness.config import HarnessConfig
from tilecache_harness.defaults import HarnessDefaults
from tilecache_harness.logging import (
    configure_harness_logging,
    configure_uvicorn_logging,
    log_level_mapping,
)

pytestmark = [
    pytest.mark.unit,
    pytest.mark.pre_merge,
    pytest.mark.parallel,
]


class TestHarnessConfig:
    def test_defaults(self, monkeypatch):
        for name in ("HOST", "PORT_MIN", "PORT_MAX", "STARTUP_TIMEOUT", "SHUTDOWN_TIMEOUT"):
            monkeypatch.delenv(f"TILECACHE_HARNESS_{name}", raising=False)
        config = HarnessConfig()
        assert config.host == "127.0.0.1"
        assert config.port_min == 8080
        assert config.port_max == 8180
        assert config.context_path == "/geowebcache"
        assert config.worker_threads == HarnessDefaults.worker_threads == 50
        assert config.accept_queue_size == 100

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("TILECACHE_HARNESS_PORT_MIN", "9000")
        monkeypatch.setenv("TILECACHE_HARNESS_PORT_MAX", "9010")
        monkeypatch.setenv("TILECACHE_HARNESS_SHUTDOWN_TIMEOUT", "2.5")
        config = HarnessConfig()
        assert config.port_min == 9000
        assert config.port_max == 9010
        assert config.shutdown_timeout == 2.5

    def test_worker_pool_ignores_environment(self, monkeypatch):
        monkeypatch.setenv("TILECACHE_HARNESS_WORKER_THREADS", "3")
        assert HarnessConfig().worker_threads == 50

    def test_rejects_inverted_range(self):
        with pytest.raises(ValidationError, match="must not exceed"):
            HarnessConfig(port_min=9000, port_max=8000)

    def test_rejects_out_of_range_port(self):
        with pytest.raises(ValidationError):
            HarnessConfig(port_min=0, port_max=10)

    def test_rejects_relative_context_path(self):
        with pytest.raises(ValidationError, match="context_path"):
            HarnessConfig(context_path="geowebcache")

    def test_strips_trailing_slash(self):
        assert HarnessConfig(context_path="/gwc/").context_path == "/gwc"

    def test_rejects_non_positive_pool(self):
        with pytest.raises(ValidationError):
            HarnessConfig(worker_threads=0)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        ("warn", logging.WARNING),
        ("warning", logging.WARNING),
        ("error", logging.ERROR),
        ("critical", logging.CRITICAL),
        ("nonsense", logging.INFO),
    ],
)
def test_log_level_mapping(value, expected):
    assert log_level_mapping(value) == expected


def test_configure_harness_logging_reads_env(monkeypatch):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    monkeypatch.setenv("TILECACHE_HARNESS_LOG", "debug")
    try:
        level = configure_harness_logging()
        assert level == logging.DEBUG
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
        configure_uvicorn_logging(logging.INFO)
