# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Optional

from starlette.requests import Request


class RequestFilterException(Exception):
    """Raised by a filter to reject a request"""

    pass


class RequestFilter:
    """Extension point applied to every request the stub service receives.

    The base filter accepts everything; subclasses override ``apply``. It runs
    on the service worker pool, so it may block without stalling the server.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name or type(self).__name__

    def apply(self, request: Request) -> None:
        pass

    def get_name(self) -> str:
        return self.name
