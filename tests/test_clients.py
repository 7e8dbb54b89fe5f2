# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import threading

import pytest
import requests

from tests.utils.fakes import FakeClient
from tilecache_harness.clients import (
    ADMIN,
    ADMIN_BAD_PASSWORD,
    NOT_A_USER,
    ClientRegistry,
    CredentialSet,
)
from tilecache_harness.errors import FixtureStateError

pytestmark = [
    pytest.mark.unit,
    pytest.mark.pre_merge,
    pytest.mark.parallel,
]


class TestPersonas:
    def test_admin(self):
        registry = ClientRegistry()
        client = registry.admin()
        assert isinstance(client, requests.Session)
        assert (client.auth.username, client.auth.password) == ("geowebcache", "secured")

    def test_anonymous_has_no_auth(self):
        assert ClientRegistry().anonymous().auth is None

    def test_admin_bad_password(self):
        client = ClientRegistry().admin_bad_password()
        assert client.auth.username == "geowebcache"
        assert client.auth.password == "thisIsTheWrongPassword"

    def test_not_a_user(self):
        client = ClientRegistry().not_a_user()
        assert (client.auth.username, client.auth.password) == (
            "IAmNotARealUser",
            "notThatItMatters",
        )

    def test_personas_are_credential_sets(self):
        assert ADMIN.username == ADMIN_BAD_PASSWORD.username
        assert ADMIN.password != ADMIN_BAD_PASSWORD.password
        assert NOT_A_USER.username != ADMIN.username

    def test_repr_hides_password(self):
        assert "secured" not in repr(ADMIN)


class TestRegistry:
    def test_every_client_is_tracked(self):
        registry = ClientRegistry()
        clients = [
            registry.admin(),
            registry.anonymous(),
            registry.create_client(CredentialSet("someone", "pw")),
        ]
        assert len(registry) == 3
        assert registry.drain() == clients
        assert len(registry) == 0

    def test_drain_closes_registry(self):
        registry = ClientRegistry()
        registry.drain()
        assert registry.closed
        with pytest.raises(FixtureStateError):
            registry.anonymous()
        with pytest.raises(FixtureStateError):
            registry.register(FakeClient("late"))

    def test_close_all_continues_past_failures(self):
        registry = ClientRegistry()
        first_error = IOError("first")
        third_error = ValueError("third")
        clients = [
            registry.register(FakeClient("a", first_error)),
            registry.register(FakeClient("b")),
            registry.register(FakeClient("c", third_error)),
            registry.register(FakeClient("d")),
        ]

        errors = registry.close_all()

        assert errors == [first_error, third_error]
        assert [c.close_calls for c in clients] == [1, 1, 1, 1]

    def test_close_all_closes_each_client_once(self):
        registry = ClientRegistry()
        client = registry.register(FakeClient("a"))
        registry.close_all()
        registry.close_all()
        assert client.close_calls == 1

    def test_concurrent_registration(self):
        registry = ClientRegistry()

        def _register():
            for i in range(50):
                registry.register(FakeClient(str(i)))

        threads = [threading.Thread(target=_register) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(registry.drain()) == 200
