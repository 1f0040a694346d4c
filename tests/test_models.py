"""Tests for result models and output formatting."""

import pytest
from pydantic import ValidationError

from ifbw.models import (
    Comparison,
    Duplex,
    InterfaceHandle,
    MetricResult,
    OperStatus,
    Predicate,
    ProbeResult,
    Severity,
)


def test_severity_values_are_exit_codes():
    assert [int(s) for s in (Severity.OK, Severity.WARNING, Severity.CRITICAL, Severity.UNKNOWN)] == [0, 1, 2, 3]
    assert Severity.CRITICAL > Severity.WARNING > Severity.OK


def test_handle_is_frozen():
    handle = InterfaceHandle(name="Gi0/1", index=1)
    with pytest.raises(ValidationError):
        handle.index = 2


def test_handle_rejects_negative_index():
    with pytest.raises(ValidationError):
        InterfaceHandle(name="Gi0/1", index=-1)


def test_duplex_phrase():
    assert Duplex.FULL.phrase == "Full Duplex"
    assert Duplex.HALF.phrase == "Half Duplex"


def test_oper_status_from_code():
    assert OperStatus.from_code(1) is OperStatus.UP
    assert OperStatus.from_code(0) is OperStatus.UNKNOWN


def test_metric_phrase_and_perfdata():
    ok = MetricResult(metric="out_util", value=85, warn_bound=90, crit_bound=95)
    warn = MetricResult(
        metric="in_util", value=93, status=Severity.WARNING,
        matched=Predicate(metric="in_util", op=Comparison.GT, bound=90),
        warn_bound=90,
    )
    assert ok.phrase() == "OK - OUT UTIL 85.00%"
    assert ok.perfdata() == "'out_util'=85.00%;90;95;0;100"
    assert warn.phrase() == "WARNING - IN UTIL (93.00% > 90%)"
    assert warn.perfdata() == "'in_util'=93.00%;90;;0;100"


def test_render_puts_worst_status_first():
    result = ProbeResult(
        severity=Severity.CRITICAL,
        label="SNMP-IF-BW-UTIL Fa0/1 (Full Duplex)",
        metrics=(
            MetricResult(metric="in_util", value=12.5, warn_bound=90, crit_bound=95),
            MetricResult(
                metric="out_util", value=96.5, status=Severity.CRITICAL,
                matched=Predicate(metric="out_util", op=Comparison.GTE, bound=95),
                warn_bound=90, crit_bound=95,
            ),
        ),
    )
    assert result.render() == (
        "SNMP-IF-BW-UTIL Fa0/1 (Full Duplex) CRITICAL - OUT UTIL (96.50% >= 95%), "
        "OK - IN UTIL 12.50% | "
        "'in_util'=12.50%;90;95;0;100 'out_util'=96.50%;90;95;0;100"
    )


def test_render_message_only():
    result = ProbeResult(
        severity=Severity.CRITICAL, label="SNMP-IF-BW-UTIL", message="Interface Fa0/1 is not up",
    )
    assert result.render() == "SNMP-IF-BW-UTIL CRITICAL - Interface Fa0/1 is not up"
