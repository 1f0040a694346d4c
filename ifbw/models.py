"""
Pydantic models for everything a probe run produces.

All of them are frozen: a handle, a state snapshot or a counter sample is
taken once and never changed afterwards.
"""

from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Severity(IntEnum):
    """Nagios-style status; the integer value is the process exit code."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


class OperStatus(str, Enum):
    """IF-MIB::ifOperStatus."""

    UP = "up"
    DOWN = "down"
    TESTING = "testing"
    UNKNOWN = "unknown"
    DORMANT = "dormant"
    NOT_PRESENT = "notPresent"
    LOWER_LAYER_DOWN = "lowerLayerDown"

    @classmethod
    def from_code(cls, code: int) -> "OperStatus":
        return _OPER_STATUS_CODES.get(code, cls.UNKNOWN)


_OPER_STATUS_CODES = {
    1: OperStatus.UP,
    2: OperStatus.DOWN,
    3: OperStatus.TESTING,
    4: OperStatus.UNKNOWN,
    5: OperStatus.DORMANT,
    6: OperStatus.NOT_PRESENT,
    7: OperStatus.LOWER_LAYER_DOWN,
}


class Duplex(str, Enum):
    """
    EtherLike-MIB::dot3StatsDuplexStatus, plus UNSUPPORTED for devices
    that have no dot3Stats entry for the interface at all.
    """

    UNKNOWN = "unknown"
    HALF = "halfDuplex"
    FULL = "fullDuplex"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_code(cls, code: int) -> "Duplex":
        return _DUPLEX_CODES.get(code, cls.UNKNOWN)

    @property
    def phrase(self) -> str:
        """'fullDuplex' -> 'Full Duplex'."""
        if self in (Duplex.HALF, Duplex.FULL):
            head = self.value.partition("Duplex")[0]
            return f"{head.capitalize()} Duplex"
        return self.value.capitalize()


_DUPLEX_CODES = {
    1: Duplex.UNKNOWN,
    2: Duplex.HALF,
    3: Duplex.FULL,
}


class Comparison(str, Enum):
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"

    @property
    def symbol(self) -> str:
        return _COMPARISON_SYMBOLS[self]

    def matches(self, value: float, bound: float) -> bool:
        if self is Comparison.LT:
            return value < bound
        if self is Comparison.LTE:
            return value <= bound
        if self is Comparison.GT:
            return value > bound
        return value >= bound


_COMPARISON_SYMBOLS = {
    Comparison.LT: "<",
    Comparison.LTE: "<=",
    Comparison.GT: ">",
    Comparison.GTE: ">=",
}


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class InterfaceHandle(_Frozen):
    name: str
    index: int = Field(ge=0)


class InterfaceState(_Frozen):
    operational: OperStatus
    duplex: Duplex = Duplex.UNSUPPORTED


class CounterSample(_Frozen):
    in_octets: int = Field(ge=0)
    out_octets: int = Field(ge=0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Predicate(_Frozen):
    """One `metric,op,bound` group of a threshold expression."""

    metric: str
    op: Comparison
    bound: float

    def matches(self, value: float) -> bool:
        return self.op.matches(value, self.bound)


class ThresholdSet(_Frozen):
    """Predicates OR'd together; an empty set never matches."""

    predicates: Tuple[Predicate, ...] = ()

    def for_metric(self, metric: str) -> Tuple[Predicate, ...]:
        return tuple(p for p in self.predicates if p.metric == metric)


class MetricResult(_Frozen):
    """
    Outcome of evaluating one metric.

    - matched:     the predicate that set `status` (None when OK)
    - warn_bound / crit_bound: bounds shown in the perfdata, None if the
      expression for that level is empty
    """

    metric: str
    value: float
    status: Severity = Severity.OK
    matched: Optional[Predicate] = None
    warn_bound: Optional[float] = None
    crit_bound: Optional[float] = None
    minimum: float = 0
    maximum: float = 100
    unit: str = "%"

    @property
    def title(self) -> str:
        return self.metric.replace("_", " ").upper()

    def phrase(self) -> str:
        """'WARNING - IN UTIL (93.00% > 90%)' or 'OK - OUT UTIL 85.00%'."""
        value = f"{self.value:.2f}{self.unit}"
        if self.matched is None:
            return f"{self.status.name} - {self.title} {value}"
        bound = f"{_num(self.matched.bound)}{self.unit}"
        return f"{self.status.name} - {self.title} ({value} {self.matched.op.symbol} {bound})"

    def perfdata(self) -> str:
        """'in_util'=93.00%;90;95;0;100"""
        return (
            f"'{self.metric}'={self.value:.2f}{self.unit};"
            f"{_num(self.warn_bound)};{_num(self.crit_bound)};"
            f"{_num(self.minimum)};{_num(self.maximum)}"
        )


def _num(value: Optional[float]) -> str:
    if value is None:
        return ""
    return f"{value:g}"


class ProbeResult(_Frozen):
    """
    Terminal value of a probe run.

    Results cut short by the interface state carry only a message;
    complete runs carry one MetricResult per tracked metric.
    """

    severity: Severity
    label: str
    message: str = ""
    metrics: Tuple[MetricResult, ...] = ()
    state: Optional[InterfaceState] = None

    def render(self) -> str:
        if not self.metrics:
            return f"{self.label} {self.severity.name} - {self.message}"

        # worst first, so the first status word is the overall one
        ordered = sorted(self.metrics, key=lambda m: -m.status)
        phrases = ", ".join(m.phrase() for m in ordered)
        perfdata = " ".join(m.perfdata() for m in self.metrics)
        return f"{self.label} {phrases} | {perfdata}"
