"""
Bandwidth utilization probe for one interface.

Run order (any step may end the run early):

    resolve ifIndex -> check ifOperStatus -> check duplex (optional)
        -> max speed -> sample 1 -> sleep -> sample 2 -> thresholds -> report

Problems with the probe itself (bad arguments, unknown interface, no duplex
support, zero speed, SNMP failures) raise ProbeError. Problems with the
interface (down, wrong duplex) are CRITICAL results.
"""

import logging
import time
from typing import Callable, Optional

from pydantic import BaseModel, Field

from ifbw import device_state, sampler
from ifbw.errors import ConfigurationError
from ifbw.models import Duplex, InterfaceState, OperStatus, ProbeResult, Severity
from ifbw.snmp_client import SnmpClient
from ifbw.speed import parse_speed
from ifbw.thresholds import check_thresholds, load_thresholds, overall_severity

logger = logging.getLogger(__name__)

LABEL = "SNMP-IF-BW-UTIL"


class ProbeOptions(BaseModel):
    """
    What to check and how.

    - max_speed:     speed spec ("100m", "1g", ...); ifSpeed is used if unset
    - sleep_time:    seconds between the two counter samples
    - half_duplex:   expect half instead of full duplex
    - check_duplex:  set False for devices without EtherLike-MIB
    - high_capacity: use the 64-bit ifHC*Octets counters
    """

    interface: str = Field(min_length=1)
    warning: str
    critical: str
    max_speed: Optional[str] = None
    sleep_time: int = Field(default=10, gt=0)
    half_duplex: bool = False
    check_duplex: bool = True
    high_capacity: bool = False

    @property
    def expected_duplex(self) -> Optional[Duplex]:
        if not self.check_duplex:
            return None
        return Duplex.HALF if self.half_duplex else Duplex.FULL


def _label(options: ProbeOptions) -> str:
    label = f"{LABEL} {options.interface}"
    if options.expected_duplex is not None:
        label += f" ({options.expected_duplex.phrase})"
    return label


def determine_max_speed(client: SnmpClient, index: int, override: Optional[str]) -> int:
    if override:
        bps = parse_speed(override)
    else:
        bps = device_state.read_nominal_speed(client, index)

    if bps <= 0:
        raise ConfigurationError(
            f"Maximum speed for the interface resolved to {bps} bps; "
            "use --max-speed to set it"
        )
    return bps


def run_probe(
    client: SnmpClient,
    options: ProbeOptions,
    sleep: Callable[[float], None] = time.sleep,
) -> ProbeResult:
    warning, critical = load_thresholds(options.warning, options.critical, sampler.METRICS)

    handle = device_state.resolve_index(client, options.interface)
    if handle is None:
        raise ConfigurationError(f"Could not find interface {options.interface} in IF-MIB")

    operational = device_state.read_operational_status(client, handle.index)
    if operational is not OperStatus.UP:
        return ProbeResult(
            severity=Severity.CRITICAL,
            label=LABEL,
            message=f"Interface {handle.name} is not up ({operational.value}), can't check utilization",
            state=InterfaceState(operational=operational),
        )

    state = InterfaceState(operational=operational)
    expected = options.expected_duplex
    if expected is not None:
        duplex = device_state.read_duplex(client, handle.index)
        if duplex is Duplex.UNSUPPORTED:
            raise ConfigurationError(
                "Duplex check requested but device does not support Etherlike-MIB "
                "for this interface.  Use --no-duplex-check to suppress duplex check"
            )
        state = InterfaceState(operational=operational, duplex=duplex)
        if duplex is not expected:
            return ProbeResult(
                severity=Severity.CRITICAL,
                label=LABEL,
                message=(
                    f"Interface {handle.name} is in {duplex.value} mode, "
                    f"expected to see it in {expected.value} mode"
                ),
                state=state,
            )

    max_bps = determine_max_speed(client, handle.index, options.max_speed)

    first, second = sampler.take_samples(
        client, handle.index, options.sleep_time, sleep, options.high_capacity
    )
    values = sampler.compute_utilization(first, second, options.sleep_time, max_bps)

    metrics = check_thresholds(values, warning, critical)
    severity = overall_severity(metrics)
    logger.debug("Overall status for %s: %s", handle.name, severity.name)

    return ProbeResult(
        severity=severity,
        label=_label(options),
        metrics=tuple(metrics),
        state=state,
    )
