"""Small helpers shared by several stores."""
from __future__ import annotations
from typing import Tuple


def split_address(address: str, default_port: int) -> Tuple[str, int]:
    """Split ``host:port`` into its parts; a missing port takes `default_port`.

    IPv6 hosts are written in brackets (``[::1]:6379``); the brackets are
    removed from the returned host.
    """
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        if rest.startswith(":"):
            return host, int(rest[1:])
        return host, default_port
    host, sep, port = address.rpartition(":")
    if not sep:
        return address, default_port
    return host or "localhost", int(port)
