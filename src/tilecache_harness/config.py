# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import os

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tilecache_harness.defaults import HarnessDefaults


ENV_PREFIX = "TILECACHE_HARNESS_"


def _env(name: str, default):
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


class HarnessConfig(BaseModel):
    """Pydantic configuration for one fixture instance.

    Defaults come from HarnessDefaults; the port range, host and timeouts may
    be overridden through TILECACHE_HARNESS_* environment variables. The
    worker pool and accept queue are fixed per harness and only change when
    passed explicitly.
    """

    # environment values arrive as strings and must be coerced
    model_config = ConfigDict(validate_default=True)

    host: str = Field(default_factory=lambda: _env("HOST", HarnessDefaults.host))
    scheme: str = HarnessDefaults.scheme
    port_min: int = Field(
        default_factory=lambda: _env("PORT_MIN", HarnessDefaults.port_min)
    )
    port_max: int = Field(
        default_factory=lambda: _env("PORT_MAX", HarnessDefaults.port_max)
    )
    context_path: str = HarnessDefaults.context_path
    worker_threads: int = Field(default=HarnessDefaults.worker_threads, gt=0)
    accept_queue_size: int = Field(default=HarnessDefaults.accept_queue_size, gt=0)
    startup_timeout: float = Field(
        default_factory=lambda: _env("STARTUP_TIMEOUT", HarnessDefaults.startup_timeout)
    )
    shutdown_timeout: float = Field(
        default_factory=lambda: _env(
            "SHUTDOWN_TIMEOUT", HarnessDefaults.shutdown_timeout
        )
    )

    @model_validator(mode="after")
    def _validate(self) -> "HarnessConfig":
        if not 1 <= self.port_min <= 65535 or not 1 <= self.port_max <= 65535:
            raise ValueError(
                f"port range must lie within 1-65535, got {self.port_min}-{self.port_max}"
            )
        if self.port_min > self.port_max:
            raise ValueError(
                f"port_min ({self.port_min}) must not exceed port_max ({self.port_max})"
            )
        if not self.context_path.startswith("/"):
            raise ValueError(
                f"context_path must start with '/', got {self.context_path!r}"
            )
        self.context_path = self.context_path.rstrip("/") or "/"
        if self.startup_timeout <= 0 or self.shutdown_timeout <= 0:
            raise ValueError("startup_timeout and shutdown_timeout must be positive")
        return self
