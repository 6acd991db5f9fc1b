"""
Pytest configuration and fixtures for nmpolicy tests.

This module provides shared fixtures used across unit and integration tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def routes_state() -> bytes:
    """Current state with a default route and one other route."""
    return b"""routes:
  running:
  - destination: 0.0.0.0/0
    next-hop-address: 192.168.100.1
    next-hop-interface: eth1
    table-id: 254
  - destination: 1.1.1.0/24
    next-hop-address: 192.168.100.1
    next-hop-interface: eth1
    table-id: 254
"""


@pytest.fixture
def default_route_capture() -> bytes:
    """The capture expected for routes.running.destination=="0.0.0.0/0"."""
    return b"""routes:
  running:
  - destination: 0.0.0.0/0
    next-hop-address: 192.168.100.1
    next-hop-interface: eth1
    table-id: 254
"""


@pytest.fixture
def interfaces_state() -> bytes:
    """Current state with interfaces, addresses and mixed scalar types."""
    return b"""interfaces:
- name: eth1
  type: ethernet
  state: up
  mtu: 1500
  ipv4:
    enabled: true
    dhcp: false
    address:
    - ip: 192.168.100.10
      prefix-length: 24
- name: eth2
  type: ethernet
  state: down
  mtu: 9000
  ipv4:
    enabled: false
    address: []
- name: br1
  type: linux-bridge
  state: up
  mtu: 1500
  ipv4:
    enabled: true
    address:
    - ip: 10.0.0.1
      prefix-length: 8
"""
