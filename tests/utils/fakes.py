# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Test doubles shared by the harness tests."""

import socket
import threading
from typing import List, Optional


class FakeClient:
    """Closeable that records how often it was closed and can fail on close."""

    def __init__(self, name: str, error: Optional[Exception] = None):
        self.name = name
        self.error = error
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        if self.error is not None:
            raise self.error

    def __repr__(self) -> str:
        return f"FakeClient({self.name!r})"


class FakeLifecycle:
    """Stand-in for ServiceLifecycle whose stop can block or fail."""

    def __init__(self, error: Optional[Exception] = None, block: bool = False):
        self.error = error
        self.stop_started = threading.Event()
        self.release = threading.Event()
        if not block:
            self.release.set()
        self.stop_calls = 0

    def stop(self) -> None:
        self.stop_calls += 1
        self.stop_started.set()
        self.release.wait(timeout=30)
        if self.error is not None:
            raise self.error


class RecordingSocketFactory:
    """socket.socket replacement that records every socket it creates."""

    def __init__(self):
        self._socket = socket.socket
        self.created: List = []

    def __call__(self, *args, **kwargs):
        sock = self._socket(*args, **kwargs)
        self.created.append(sock)
        return sock
