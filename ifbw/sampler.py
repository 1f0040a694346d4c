"""
Traffic sampling and utilization math.

Utilization follows Cisco's formula for a polling interval of N seconds:

    util% = (delta_octets * 8 * 100) / (N * ifSpeed)

N is the configured sleep between the two samples, not a measured
wall-clock delta.
"""

import logging
import time
from typing import Callable, Dict, Tuple

from ifbw.errors import ConfigurationError, ProbeError
from ifbw.models import CounterSample
from ifbw.snmp_client import SnmpClient

logger = logging.getLogger(__name__)

IF_IN_OCTETS = "1.3.6.1.2.1.2.2.1.10"
IF_OUT_OCTETS = "1.3.6.1.2.1.2.2.1.16"
IF_HC_IN_OCTETS = "1.3.6.1.2.1.31.1.1.1.6"
IF_HC_OUT_OCTETS = "1.3.6.1.2.1.31.1.1.1.10"

METRICS = ("in_util", "out_util")


def counter_oids(index: int, high_capacity: bool = False) -> Tuple[str, str]:
    if high_capacity:
        return f"{IF_HC_IN_OCTETS}.{index}", f"{IF_HC_OUT_OCTETS}.{index}"
    return f"{IF_IN_OCTETS}.{index}", f"{IF_OUT_OCTETS}.{index}"


def read_counters(client: SnmpClient, index: int, high_capacity: bool = False) -> CounterSample:
    """Read in/out octets for the interface in a single GET."""
    in_oid, out_oid = counter_oids(index, high_capacity)
    results = client.get(in_oid, out_oid)

    sample = CounterSample(
        in_octets=int(results[in_oid]),
        out_octets=int(results[out_oid]),
    )
    logger.debug("Interface %d: in %d, out %d", index, sample.in_octets, sample.out_octets)
    return sample


def take_samples(
    client: SnmpClient,
    index: int,
    delay: int,
    sleep: Callable[[float], None] = time.sleep,
    high_capacity: bool = False,
) -> Tuple[CounterSample, CounterSample]:
    logger.debug("Retrieving traffic sample 1")
    first = read_counters(client, index, high_capacity)

    logger.debug("Sleep %s seconds between samples", delay)
    sleep(delay)

    logger.debug("Retrieving traffic sample 2")
    second = read_counters(client, index, high_capacity)
    return first, second


def _utilization(delta: int, elapsed: float, max_bps: int) -> float:
    return round((delta * 8 * 100) / (elapsed * max_bps), 2)


def compute_utilization(
    first: CounterSample,
    second: CounterSample,
    elapsed_seconds: float,
    max_bps: int,
) -> Dict[str, float]:
    """Percent utilization per direction, rounded to two decimals."""
    if max_bps <= 0:
        raise ConfigurationError(
            f"Maximum speed for the interface is {max_bps} bps, can't compute "
            "utilization; use --max-speed to set it"
        )
    if elapsed_seconds <= 0:
        raise ConfigurationError(f"Sleep time must be positive, got {elapsed_seconds}")

    in_delta = second.in_octets - first.in_octets
    out_delta = second.out_octets - first.out_octets
    if in_delta < 0 or out_delta < 0:
        raise ProbeError(
            "Octet counters went backwards between samples (counter wrap or reset)"
        )

    logger.debug("In utilization: (%d * 800) / (%s * %d)", in_delta, elapsed_seconds, max_bps)
    logger.debug("Out utilization: (%d * 800) / (%s * %d)", out_delta, elapsed_seconds, max_bps)

    return {
        "in_util": _utilization(in_delta, elapsed_seconds, max_bps),
        "out_util": _utilization(out_delta, elapsed_seconds, max_bps),
    }
