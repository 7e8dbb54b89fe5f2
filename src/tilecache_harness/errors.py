# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Error taxonomy for the fixture harness.

Every error keeps an ordered list of suppressed failures: a secondary failure
raised while handling a primary one is attached here instead of replacing it.
"""

from typing import Iterable, List, Optional


class HarnessError(Exception):
    """Base class for all harness errors"""

    def __init__(self, message: str, suppressed: Optional[Iterable[BaseException]] = None):
        super().__init__(message)
        self.message = message
        self.suppressed: List[BaseException] = list(suppressed or [])

    def add_suppressed(self, error: BaseException) -> None:
        self.suppressed.append(error)

    def __str__(self) -> str:
        if not self.suppressed:
            return self.message
        details = "; ".join(
            f"{type(err).__name__}: {err}" for err in self.suppressed
        )
        return f"{self.message} (suppressed {len(self.suppressed)}: {details})"


class FixtureStateError(HarnessError):
    """Lifecycle operations were invoked out of order"""

    pass


class ProvisioningFailure(HarnessError):
    """An initializer failed while provisioning a directory"""

    pass


class PortExhausted(HarnessError):
    def __init__(self, port_min: int, port_max: int):
        super().__init__(f"No free port available in range {port_min}-{port_max}")
        self.port_min = port_min
        self.port_max = port_max


class StartupFailure(HarnessError):
    """The service could not be started"""

    pass


class ShutdownFailure(HarnessError):
    """The service could not be stopped"""

    pass


class ClientCleanupFailure(HarnessError):
    """One or more HTTP clients failed to close.

    ``errors`` holds every individual close failure in the order the clients
    were closed; the same failures are mirrored in ``suppressed``.
    """

    def __init__(self, errors: Iterable[BaseException]):
        errors = list(errors)
        super().__init__("Error while closing HTTP clients", suppressed=errors)
        self.errors = errors
