# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Protocol

import requests
from requests.auth import HTTPBasicAuth

from tilecache_harness.defaults import ServiceDefaults
from tilecache_harness.errors import FixtureStateError

logger = logging.getLogger(__name__)


class Closeable(Protocol):
    def close(self) -> None:
        ...


@dataclass(frozen=True)
class CredentialSet:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"CredentialSet(username={self.username!r}, password='***')"


# Credential personas used across integration tests
ADMIN = CredentialSet(ServiceDefaults.admin_username, ServiceDefaults.admin_password)
ADMIN_BAD_PASSWORD = CredentialSet(
    ServiceDefaults.admin_username, "thisIsTheWrongPassword"
)
NOT_A_USER = CredentialSet("IAmNotARealUser", "notThatItMatters")
ANONYMOUS: Optional[CredentialSet] = None


class ClientRegistry:
    """Creates HTTP clients and tracks them until teardown.

    Every client handed out is registered so that teardown can close it.
    Once drained the registry is closed and refuses new clients.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._clients: List[Closeable] = []
        self._closed = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    @property
    def closed(self) -> bool:
        return self._closed

    def register(self, client: Closeable) -> Closeable:
        with self._lock:
            if self._closed:
                raise FixtureStateError("Client registry has been drained")
            self._clients.append(client)
        return client

    def create_client(
        self, credentials: Optional[CredentialSet] = None
    ) -> requests.Session:
        """Build a session authenticating with ``credentials`` (None for anonymous)."""
        session = requests.Session()
        if credentials is not None:
            session.auth = HTTPBasicAuth(credentials.username, credentials.password)
        try:
            self.register(session)
        except FixtureStateError:
            session.close()
            raise
        logger.debug(
            "Created client for %s",
            credentials.username if credentials is not None else "anonymous",
        )
        return session

    def admin(self) -> requests.Session:
        return self.create_client(ADMIN)

    def anonymous(self) -> requests.Session:
        return self.create_client(ANONYMOUS)

    def admin_bad_password(self) -> requests.Session:
        return self.create_client(ADMIN_BAD_PASSWORD)

    def not_a_user(self) -> requests.Session:
        return self.create_client(NOT_A_USER)

    def drain(self) -> List[Closeable]:
        """Remove and return every tracked client; the registry is closed afterwards."""
        with self._lock:
            clients = self._clients
            self._clients = []
            self._closed = True
        return clients

    def close_all(self) -> List[Exception]:
        """Close every tracked client, continuing past failures.

        Returns:
            The failures raised by ``close``, in the order the clients were
            registered
        """
        errors: List[Exception] = []
        clients = self.drain()
        for client in clients:
            try:
                client.close()
            except Exception as e:
                logger.warning(f"Failed to close client {client!r}: {e}")
                errors.append(e)
        logger.info(f"Closed {len(clients) - len(errors)}/{len(clients)} clients")
        return errors
