# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from tilecache_harness.clients import (
    ADMIN,
    ADMIN_BAD_PASSWORD,
    ANONYMOUS,
    NOT_A_USER,
    ClientRegistry,
    CredentialSet,
)
from tilecache_harness.config import HarnessConfig
from tilecache_harness.errors import (
    ClientCleanupFailure,
    FixtureStateError,
    HarnessError,
    PortExhausted,
    ProvisioningFailure,
    ShutdownFailure,
    StartupFailure,
)
from tilecache_harness.fixture import FixtureState, TileCacheFixture
from tilecache_harness.initializers import Initializer, and_then, make_safe, noop
from tilecache_harness.lifecycle import ServiceLifecycle
from tilecache_harness.port_utils import NegotiatedPort, negotiate_port
from tilecache_harness.provisioning import ProvisionedDirectories, provision_directories
from tilecache_harness.teardown import TeardownCoordinator

__all__ = [
    "ADMIN",
    "ADMIN_BAD_PASSWORD",
    "ANONYMOUS",
    "NOT_A_USER",
    "ClientCleanupFailure",
    "ClientRegistry",
    "CredentialSet",
    "FixtureState",
    "FixtureStateError",
    "HarnessConfig",
    "HarnessError",
    "Initializer",
    "NegotiatedPort",
    "PortExhausted",
    "ProvisionedDirectories",
    "ProvisioningFailure",
    "ServiceLifecycle",
    "ShutdownFailure",
    "StartupFailure",
    "TeardownCoordinator",
    "TileCacheFixture",
    "and_then",
    "make_safe",
    "negotiate_port",
    "noop",
    "provision_directories",
]
