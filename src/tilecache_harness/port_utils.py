# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Port negotiation for the embedded service.

A port is claimed by actually opening a listening socket on it. The socket is
kept open and handed to the server, so the port cannot be taken by a
parallel test between negotiation and startup.
"""

import logging
import socket
from dataclasses import dataclass, field
from typing import Callable

from tilecache_harness.defaults import HarnessDefaults
from tilecache_harness.errors import PortExhausted

logger = logging.getLogger(__name__)

SocketFactory = Callable[..., socket.socket]


@dataclass
class NegotiatedPort:
    """A port together with the listening socket that holds it"""

    host: str
    port: int
    sock: socket.socket = field(repr=False)

    @property
    def closed(self) -> bool:
        return self.sock.fileno() == -1

    def close(self) -> None:
        self.sock.close()


def _open_listener(
    host: str, port: int, backlog: int, socket_factory: SocketFactory
) -> socket.socket:
    """Bind and listen on (host, port), closing the socket if either fails."""
    sock = socket_factory(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except OSError:
        sock.close()
        raise
    return sock


def negotiate_port(
    port_min: int = HarnessDefaults.port_min,
    port_max: int = HarnessDefaults.port_max,
    host: str = HarnessDefaults.host,
    backlog: int = HarnessDefaults.accept_queue_size,
    socket_factory: SocketFactory = socket.socket,
) -> NegotiatedPort:
    """Open a listening socket on the first free port in [port_min, port_max].

    Ports are tried in ascending order. A bind or listen conflict moves on to
    the next port; the socket of the failed attempt is closed first. Probing
    stops at the first success.

    Args:
        port_min: First port to try
        port_max: Last port to try (inclusive)
        host: Address to bind
        backlog: Accept queue size for the listening socket
        socket_factory: Callable creating the socket, ``socket.socket`` by default

    Returns:
        NegotiatedPort: The port and the open listening socket holding it

    Raises:
        PortExhausted: If every port in the range is taken
    """
    if port_min < 1 or port_max > 65535:
        raise ValueError(f"Port range must lie within 1-65535, got {port_min}-{port_max}")
    if port_min > port_max:
        raise ValueError(f"port_min ({port_min}) must not exceed port_max ({port_max})")

    for port in range(port_min, port_max + 1):
        try:
            sock = _open_listener(host, port, backlog, socket_factory)
        except OSError as e:
            logger.debug(f"Port {port} unavailable: {e}")
            continue
        logger.info(f"Negotiated port {port} on {host}")
        return NegotiatedPort(host=host, port=port, sock=sock)

    logger.error(f"FAILED: no free port in range {port_min}-{port_max}")
    raise PortExhausted(port_min, port_max)


def is_port_accepting(host: str, port: int, timeout: float = 1.0) -> bool:
    """Check if something accepts TCP connections on (host, port)."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.settimeout(timeout)
        return s.connect_ex((host, port)) == 0
