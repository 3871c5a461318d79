"""
E2E test configuration and fixtures.

These tests talk to a real regtest bitcoind (e.g. started with
`bitcoind -regtest -rpcuser=alice -rpcpassword=password -fallbackfee=0.0002`).
No -txindex is needed: funding transactions are looked up by block hash.
They are marked `docker` and excluded by default; run them with `-m docker`.
"""

from __future__ import annotations

import os
import socket
from collections.abc import Iterator
from urllib.parse import urlparse

import pytest
from loguru import logger

from rtwallet.backends.bitcoin_core import BitcoinCoreRPC


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Mark every test under tests/e2e with 'docker' so it is deselected by default."""
    docker_marker = pytest.mark.docker
    for item in items:
        if "e2e" in item.path.parts and "docker" not in {m.name for m in item.iter_markers()}:
            item.add_marker(docker_marker)


def is_port_open(host: str, port: int, timeout: float = 1.0) -> bool:
    """Check if a TCP port is open."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.settimeout(timeout)
    try:
        return sock.connect_ex((host, port)) == 0
    finally:
        sock.close()


@pytest.fixture
def bitcoin_rpc_config() -> dict[str, str]:
    """Bitcoin Core RPC configuration from environment or defaults."""
    return {
        "rpc_url": os.environ.get("RTWALLET_RPC_URL", "http://127.0.0.1:18443"),
        "rpc_user": os.environ.get("RTWALLET_RPC_USER", "alice"),
        "rpc_password": os.environ.get("RTWALLET_RPC_PASSWORD", "password"),
    }


@pytest.fixture
def bitcoin_rpc(bitcoin_rpc_config: dict[str, str]) -> Iterator[BitcoinCoreRPC]:
    """Node gateway for the regtest node, skipping when it is not reachable."""
    url = urlparse(bitcoin_rpc_config["rpc_url"])
    if not is_port_open(url.hostname or "127.0.0.1", url.port or 18443):
        logger.warning(f"Bitcoin Core not accessible at {bitcoin_rpc_config['rpc_url']}")
        pytest.skip("Bitcoin Core regtest node not available")

    gateway = BitcoinCoreRPC(**bitcoin_rpc_config)
    yield gateway
    gateway.close()
