"""Shared test fixtures."""

from __future__ import annotations

import pytest

from ifbw.snmp_client import StubSnmpClient

IF_TABLE = "1.3.6.1.2.1.2.2.1"
DOT3 = "1.3.6.1.2.1.10.7.2.1"


def build_device(
    *,
    name: str = "FastEthernet0/1",
    index: int = 3,
    oper_status: int = 1,
    duplex: int | None = 3,
    speed: int = 10_000_000,
    in_octets: int = 5_000_000,
    out_octets: int = 7_000_000,
    in_step: int = 1_000_000,
    out_step: int = 250_000,
) -> StubSnmpClient:
    """
    Router with three ports; `name` sits at ifIndex `index`.

    The EtherLike table is deliberately indexed differently from IF-MIB
    (dot3StatsIndex 10+n points at ifIndex n). `duplex=None` leaves the
    port out of the EtherLike table entirely.
    """
    oids = {
        f"{IF_TABLE}.2.1": "Loopback0",
        f"{IF_TABLE}.2.2": "FastEthernet0/0",
        f"{IF_TABLE}.2.{index}": name,
        f"{IF_TABLE}.5.{index}": speed,
        f"{IF_TABLE}.8.{index}": oper_status,
        f"{IF_TABLE}.10.{index}": in_octets,
        f"{IF_TABLE}.16.{index}": out_octets,
        f"1.3.6.1.2.1.31.1.1.1.6.{index}": in_octets,
        f"1.3.6.1.2.1.31.1.1.1.10.{index}": out_octets,
        f"{DOT3}.1.12": 2,
        f"{DOT3}.19.12": 3,
    }
    if duplex is not None:
        oids[f"{DOT3}.1.{10 + index}"] = index
        oids[f"{DOT3}.19.{10 + index}"] = duplex

    steps = {
        f"{IF_TABLE}.10.{index}": in_step,
        f"{IF_TABLE}.16.{index}": out_step,
        f"1.3.6.1.2.1.31.1.1.1.6.{index}": in_step,
        f"1.3.6.1.2.1.31.1.1.1.10.{index}": out_step,
    }
    return StubSnmpClient(oids, steps)


@pytest.fixture
def device() -> StubSnmpClient:
    return build_device()


@pytest.fixture
def make_device():
    return build_device


@pytest.fixture
def no_sleep():
    calls = []

    def sleep(seconds):
        calls.append(seconds)

    sleep.calls = calls
    return sleep
