"""
SNMP client abstraction.

The probe only needs two read primitives:

- get(*oids)    -> {oid: value} for one or more scalar reads
- walk(prefix)  -> {oid: value} for every instance below a table column

We support two implementations:

1. SnmpSession: real SNMP v1/v2c/v3 using pysnmp.
2. StubSnmpClient: an in-memory device whose counters move on every read.

This lets you:
- run the probe locally without a real router (USE_SNMP_STUB=1)
- test every component without the network

OIDs are always dotted strings without a leading dot, e.g.
"1.3.6.1.2.1.2.2.1.2.3".
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Dict, Optional, Protocol

from pyasn1.type import univ
from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    USM_AUTH_HMAC96_MD5,
    USM_AUTH_HMAC96_SHA,
    USM_PRIV_CBC56_DES,
    USM_PRIV_CFB128_AES,
    UdpTransportTarget,
    UsmUserData,
    get_cmd,
    walk_cmd,
)
from pysnmp.proto.rfc1905 import EndOfMibView, NoSuchInstance, NoSuchObject

from ifbw.config import Settings
from ifbw.errors import ConfigurationError, SnmpError

logger = logging.getLogger(__name__)

# mpModel values for CommunityData
_MP_MODELS = {"1": 0, "2c": 1}

_AUTH_PROTOCOLS = {"md5": USM_AUTH_HMAC96_MD5, "sha": USM_AUTH_HMAC96_SHA}
_PRIV_PROTOCOLS = {"des": USM_PRIV_CBC56_DES, "aes": USM_PRIV_CFB128_AES}


class SnmpClient(Protocol):
    def get(self, *oids: str) -> Dict[str, Any]:
        ...

    def walk(self, prefix: str) -> Dict[str, Any]:
        ...


def normalize_oid(oid: str) -> str:
    return oid.strip().lstrip(".")


def in_subtree(oid: str, prefix: str) -> bool:
    return oid == prefix or oid.startswith(prefix + ".")


# ---------------------------------------------------------------------------
# Real SNMP implementation
# ---------------------------------------------------------------------------


def _to_python(value: Any) -> Any:
    """Convert a pysnmp value into int / str."""
    if isinstance(value, univ.Integer):
        # Integer32, Counter32/64, Gauge32, TimeTicks, ... all derive from it
        return int(value)
    if isinstance(value, univ.OctetString):
        return str(value)
    return value.prettyPrint()


def _check_response(errorIndication, errorStatus, errorIndex, varBinds) -> None:
    if errorIndication:
        raise SnmpError(str(errorIndication))
    if errorStatus:
        msg = f"{errorStatus.prettyPrint()} at {errorIndex and varBinds[int(errorIndex) - 1][0] or '?'}"
        raise SnmpError(msg)


def auth_data(
    version: str,
    community: str = "public",
    username: Optional[str] = None,
    auth_password: Optional[str] = None,
    priv_password: Optional[str] = None,
    auth_protocol: str = "sha",
    priv_protocol: str = "aes",
):
    """
    Credentials for a session.

    - "1" / "2c" -> CommunityData
    - "3"        -> UsmUserData; the security level follows from which
                    passwords are given (privacy needs auth too)
    """
    if version in _MP_MODELS:
        return CommunityData(community, mpModel=_MP_MODELS[version])
    if version != "3":
        raise ConfigurationError(f"unsupported SNMP version {version!r}")
    if not username:
        raise ConfigurationError("SNMPv3 needs a username")
    if priv_password and not auth_password:
        raise ConfigurationError("SNMPv3 privacy needs an auth password as well")
    if auth_protocol not in _AUTH_PROTOCOLS:
        raise ConfigurationError(f"unknown SNMPv3 auth protocol {auth_protocol!r}")
    if priv_protocol not in _PRIV_PROTOCOLS:
        raise ConfigurationError(f"unknown SNMPv3 privacy protocol {priv_protocol!r}")

    if not auth_password:
        return UsmUserData(username)
    if not priv_password:
        return UsmUserData(
            username, authKey=auth_password, authProtocol=_AUTH_PROTOCOLS[auth_protocol]
        )
    return UsmUserData(
        username,
        authKey=auth_password,
        privKey=priv_password,
        authProtocol=_AUTH_PROTOCOLS[auth_protocol],
        privProtocol=_PRIV_PROTOCOLS[priv_protocol],
    )


class SnmpSession:
    """
    One SNMP session against one device.

    Use it as a context manager; the engine and its transport are released
    on every exit path:

        with SnmpSession("10.0.0.1", community="public") as snmp:
            snmp.get("1.3.6.1.2.1.1.1.0")

    Requests are never retried: a timeout raises SnmpError straight away.
    """

    def __init__(
        self,
        host: str,
        community: str = "public",
        port: int = 161,
        version: str = "2c",
        timeout: float = 5.0,
        **usm,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self._auth = auth_data(version, community, **usm)
        self._runner: Optional[asyncio.Runner] = None
        self._engine: Optional[SnmpEngine] = None
        self._transport: Optional[UdpTransportTarget] = None

    def __enter__(self) -> "SnmpSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        logger.debug("Opening SNMP session to %s:%s", self.host, self.port)
        self._runner = asyncio.Runner()
        try:
            self._runner.run(self._open())
        except Exception as exc:
            self.close()
            raise SnmpError(f"cannot reach {self.host}:{self.port}: {exc}") from exc

    async def _open(self) -> None:
        self._engine = SnmpEngine()
        self._transport = await UdpTransportTarget.create(
            (self.host, self.port), timeout=self.timeout, retries=0
        )

    def close(self) -> None:
        if self._runner is None:
            return
        try:
            if self._engine is not None:
                self._engine.close_dispatcher()
        finally:
            self._engine = None
            self._transport = None
            self._runner.close()
            self._runner = None
            logger.debug("Closed SNMP session to %s:%s", self.host, self.port)

    def _run(self, coro):
        if self._runner is None or self._engine is None:
            coro.close()
            raise SnmpError("SNMP session is not open")
        return self._runner.run(coro)

    def get(self, *oids: str) -> Dict[str, Any]:
        return self._run(self._get([normalize_oid(o) for o in oids]))

    async def _get(self, oids) -> Dict[str, Any]:
        response = await get_cmd(
            self._engine,
            self._auth,
            self._transport,
            ContextData(),
            *[ObjectType(ObjectIdentity(oid)) for oid in oids],
        )
        _check_response(*response)

        results: Dict[str, Any] = {}
        for name, value in response[3]:
            oid = str(name)
            if isinstance(value, (NoSuchObject, NoSuchInstance, EndOfMibView)):
                raise SnmpError(f"no such instance: {oid}")
            results[oid] = _to_python(value)
            logger.debug("GET %s = %r", oid, results[oid])
        return results

    def walk(self, prefix: str) -> Dict[str, Any]:
        return self._run(self._walk(normalize_oid(prefix)))

    async def _walk(self, prefix: str) -> Dict[str, Any]:
        results: Dict[str, Any] = {}
        async for response in walk_cmd(
            self._engine,
            self._auth,
            self._transport,
            ContextData(),
            ObjectType(ObjectIdentity(prefix)),
            lexicographicMode=False,
        ):
            _check_response(*response)
            for name, value in response[3]:
                oid = str(name)
                if not in_subtree(oid, prefix):
                    continue
                if isinstance(value, (NoSuchObject, NoSuchInstance, EndOfMibView)):
                    continue
                results[oid] = _to_python(value)

        logger.debug("WALK %s returned %d entries", prefix, len(results))
        return results


# ---------------------------------------------------------------------------
# Stub implementation: an in-memory device
# ---------------------------------------------------------------------------


class StubSnmpClient:
    """
    In-memory SNMP agent.

    - oids:    the device's MIB view, {oid: value}
    - steps:   optional {oid: increment}; each GET of such an OID bumps the
               stored value first, so counters move like real traffic

    Missing OIDs behave like noSuchInstance and raise SnmpError.
    """

    def __init__(
        self,
        oids: Dict[str, Any],
        steps: Optional[Dict[str, int]] = None,
    ) -> None:
        self._oids = {normalize_oid(k): v for k, v in oids.items()}
        self._steps = {normalize_oid(k): v for k, v in (steps or {}).items()}
        self.requests: list = []

    def __enter__(self) -> "StubSnmpClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None

    def get(self, *oids: str) -> Dict[str, Any]:
        results: Dict[str, Any] = {}
        for oid in (normalize_oid(o) for o in oids):
            self.requests.append(("get", oid))
            if oid not in self._oids:
                raise SnmpError(f"no such instance: {oid}")
            if oid in self._steps:
                self._oids[oid] += self._steps[oid]
            results[oid] = self._oids[oid]
        return results

    def walk(self, prefix: str) -> Dict[str, Any]:
        prefix = normalize_oid(prefix)
        self.requests.append(("walk", prefix))
        return {
            oid: value
            for oid, value in sorted(self._oids.items(), key=lambda kv: _oid_key(kv[0]))
            if in_subtree(oid, prefix)
        }


def _oid_key(oid: str):
    return tuple(int(part) for part in oid.split("."))


def demo_device(if_name: str = "stub-if1", if_index: int = 1) -> StubSnmpClient:
    """
    A single 100 Mbps full-duplex Ethernet port with random traffic,
    matching what `USE_SNMP_STUB=1` probes.
    """
    base = "1.3.6.1.2.1.2.2.1"
    in_hc = "1.3.6.1.2.1.31.1.1.1.6"
    out_hc = "1.3.6.1.2.1.31.1.1.1.10"
    in_octets = random.randint(1_000_000, 10_000_000)
    out_octets = random.randint(1_000_000, 10_000_000)

    oids = {
        f"{base}.2.{if_index}": if_name,
        f"{base}.5.{if_index}": 100_000_000,  # 100 Mbps
        f"{base}.8.{if_index}": 1,  # up
        f"{base}.10.{if_index}": in_octets,
        f"{base}.16.{if_index}": out_octets,
        f"{in_hc}.{if_index}": in_octets,
        f"{out_hc}.{if_index}": out_octets,
        f"1.3.6.1.2.1.10.7.2.1.1.{if_index}": if_index,
        f"1.3.6.1.2.1.10.7.2.1.19.{if_index}": 3,  # fullDuplex
    }
    steps = {
        f"{base}.10.{if_index}": random.randint(10_000, 100_000),
        f"{base}.16.{if_index}": random.randint(10_000, 100_000),
    }
    steps[f"{in_hc}.{if_index}"] = steps[f"{base}.10.{if_index}"]
    steps[f"{out_hc}.{if_index}"] = steps[f"{base}.16.{if_index}"]
    return StubSnmpClient(oids, steps)


# ---------------------------------------------------------------------------
# Public entry point used by the command line
# ---------------------------------------------------------------------------


def open_client(settings: Settings):
    """
    Return a context-managed client for the configured device.

    - settings.use_snmp_stub -> the in-memory demo device
    - otherwise              -> a real SnmpSession
    """
    if settings.use_snmp_stub:
        logger.debug("Using in-memory stub device")
        return demo_device()

    return SnmpSession(
        host=settings.snmp_host,
        community=settings.snmp_community,
        port=settings.snmp_port,
        version=settings.snmp_version,
        timeout=settings.snmp_timeout,
        username=settings.snmp_username,
        auth_password=settings.snmp_auth_password,
        priv_password=settings.snmp_priv_password,
        auth_protocol=settings.snmp_auth_protocol,
        priv_protocol=settings.snmp_priv_protocol,
    )
