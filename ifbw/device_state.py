"""
Interface state lookups over SNMP.

Each reader takes the client explicitly and does one job:

    name -> ifIndex -> ifOperStatus / dot3StatsDuplexStatus / ifSpeed

Table scans go through `lookup()`, which works on a plain mapping and
needs no device at all.

OIDs used (IF-MIB 1.3.6.1.2.1.2.2.1.X.ifIndex):
- ifDescr       (2)
- ifSpeed       (5)
- ifOperStatus  (8)

and from EtherLike-MIB (1.3.6.1.2.1.10.7.2.1.X.dot3StatsIndex):
- dot3StatsIndex        (1)   value is the matching ifIndex
- dot3StatsDuplexStatus (19)
"""

import logging
from typing import Callable, Mapping, Optional, Tuple, TypeVar

from ifbw.models import Duplex, InterfaceHandle, OperStatus
from ifbw.snmp_client import SnmpClient

logger = logging.getLogger(__name__)

IF_TABLE = "1.3.6.1.2.1.2.2.1"
IF_DESCR = f"{IF_TABLE}.2"
IF_SPEED = f"{IF_TABLE}.5"
IF_OPER_STATUS = f"{IF_TABLE}.8"

DOT3_STATS_INDEX = "1.3.6.1.2.1.10.7.2.1.1"
DOT3_STATS_DUPLEX_STATUS = "1.3.6.1.2.1.10.7.2.1.19"

K = TypeVar("K")
V = TypeVar("V")


def lookup(
    table: Mapping[K, V], predicate: Callable[[K, V], bool]
) -> Optional[Tuple[K, V]]:
    """Return the first (key, value) of `table` accepted by `predicate`."""
    for key, value in table.items():
        if predicate(key, value):
            return key, value
    return None


def oid_index(oid: str) -> int:
    """Last sub-identifier of an OID: '1.3.6.1.2.1.2.2.1.2.7' -> 7."""
    return int(oid.rsplit(".", 1)[-1])


def resolve_index(client: SnmpClient, name: str) -> Optional[InterfaceHandle]:
    """
    Search ifDescr for `name` (case-insensitive).

    Returns None if the device has no such interface.
    """
    wanted = name.lower()
    logger.debug("Checking for IF description %s", wanted)

    table = client.walk(IF_DESCR)
    found = lookup(table, lambda oid, descr: str(descr).lower() == wanted)
    if found is None:
        return None

    idx = oid_index(found[0])
    logger.debug("Found IF %s - index %d", wanted, idx)
    return InterfaceHandle(name=name, index=idx)


def read_operational_status(client: SnmpClient, index: int) -> OperStatus:
    oid = f"{IF_OPER_STATUS}.{index}"
    code = int(client.get(oid)[oid])
    status = OperStatus.from_code(code)
    logger.debug("Interface status is %s (%d)", status.value, code)
    return status


def read_duplex(client: SnmpClient, index: int) -> Duplex:
    """
    Duplex of the port whose dot3StatsIndex points at `index`.

    Devices that don't implement EtherLike-MIB for this interface give
    Duplex.UNSUPPORTED, which is not the same as the MIB's own `unknown`.
    """
    logger.debug("Checking duplex on IF index %d", index)

    ports = client.walk(DOT3_STATS_INDEX)
    found = lookup(ports, lambda oid, if_idx: str(if_idx) == str(index))
    if found is None:
        logger.debug("No Etherlike-MIB entry for IF index %d", index)
        return Duplex.UNSUPPORTED

    eidx = oid_index(found[0])
    logger.debug("Etherlike-MIB Index for %d: %d", index, eidx)

    duplex_oid = f"{DOT3_STATS_DUPLEX_STATUS}.{eidx}"
    code = int(client.get(duplex_oid)[duplex_oid])
    duplex = Duplex.from_code(code)
    logger.debug("Etherlike-MIB Duplex %d: %s", code, duplex.value)
    return duplex


def read_nominal_speed(client: SnmpClient, index: int) -> int:
    oid = f"{IF_SPEED}.{index}"
    bps = int(client.get(oid)[oid])
    logger.debug("Interface speed is %d", bps)
    return bps
