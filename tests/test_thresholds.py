"""Tests for threshold parsing and evaluation."""

import pytest

from ifbw.errors import ConfigurationError
from ifbw.models import Comparison, Predicate, ProbeResult, Severity
from ifbw.thresholds import check_thresholds, load_thresholds, overall_severity, parse_thresholds

METRICS = ("in_util", "out_util")


# ── Parsing ──────────────────────────────────────────────────────────


def test_parse_two_groups():
    thresholds, errors = parse_thresholds("in_util,gt,90:out_util,gt,90", METRICS)
    assert errors == []
    assert thresholds.predicates == (
        Predicate(metric="in_util", op=Comparison.GT, bound=90),
        Predicate(metric="out_util", op=Comparison.GT, bound=90),
    )


def test_parse_unknown_metric():
    thresholds, errors = parse_thresholds("bogus,gt,90", METRICS)
    assert len(errors) == 1
    assert "unknown metric" in errors[0]
    assert thresholds.predicates == ()


def test_parse_collects_every_error():
    _, errors = parse_thresholds("bogus,gt,90:in_util,eq,5:out_util,lt,lots", METRICS)
    assert len(errors) == 3
    assert "unknown metric" in errors[0]
    assert "unknown operator" in errors[1]
    assert "invalid bound" in errors[2]


def test_parse_one_group_with_several_problems():
    _, errors = parse_thresholds("bogus,eq,x", METRICS)
    assert len(errors) == 3


def test_parse_wrong_field_count():
    _, errors = parse_thresholds("in_util,gt", METRICS)
    assert len(errors) == 1
    assert "invalid threshold" in errors[0]


def test_parse_operator_case_and_decimals():
    thresholds, errors = parse_thresholds("in_util,GTE,85.5", METRICS)
    assert errors == []
    assert thresholds.predicates[0].op is Comparison.GTE
    assert thresholds.predicates[0].bound == 85.5


def test_parse_skips_empty_groups():
    thresholds, errors = parse_thresholds("in_util,lt,5::", METRICS)
    assert errors == []
    assert len(thresholds.predicates) == 1


def test_parse_rejects_nan_bound():
    _, errors = parse_thresholds("in_util,gt,nan", METRICS)
    assert errors and "invalid bound" in errors[0]


def test_load_thresholds_reports_all_errors_together():
    with pytest.raises(ConfigurationError) as excinfo:
        load_thresholds("in_util,gt,90", "bogus,gt,95:out_util,xx,95", METRICS)
    message = str(excinfo.value)
    assert message.startswith("Invalid critical threshold specified:")
    assert "unknown metric" in message
    assert "unknown operator" in message


@pytest.mark.parametrize("warning, critical", [("", "out_util,gt,95"), ("in_util,gt,90", "  ")])
def test_load_thresholds_missing(warning, critical):
    with pytest.raises(ConfigurationError, match="Missing"):
        load_thresholds(warning, critical, METRICS)


# ── Evaluation ───────────────────────────────────────────────────────


def _load(warning, critical):
    return load_thresholds(warning, critical, METRICS)


def test_documented_example_is_warning():
    warning, critical = _load("in_util,gt,90:out_util,gt,90", "out_util,gt,95")
    results = check_thresholds({"in_util": 93, "out_util": 85}, warning, critical)
    by_name = {r.metric: r for r in results}

    assert overall_severity(results) == Severity.WARNING
    assert by_name["in_util"].status == Severity.WARNING
    assert by_name["in_util"].matched.bound == 90
    assert by_name["out_util"].status == Severity.OK
    assert by_name["out_util"].matched is None


def test_critical_wins_over_warning():
    warning, critical = _load("in_util,gt,90", "in_util,gt,95")
    results = check_thresholds({"in_util": 97, "out_util": 10}, warning, critical)
    assert overall_severity(results) == Severity.CRITICAL
    assert results[0].status == Severity.CRITICAL
    assert results[0].matched.bound == 95


def test_groups_are_ored():
    warning, critical = _load("in_util,lt,1:in_util,gt,90", "out_util,gt,99")
    results = check_thresholds({"in_util": 0.5, "out_util": 50}, warning, critical)
    assert results[0].status == Severity.WARNING
    assert results[0].matched.op is Comparison.LT


@pytest.mark.parametrize(
    "op, value, hit",
    [("lt", 89.99, True), ("lt", 90, False), ("lte", 90, True), ("gt", 90, False),
     ("gt", 90.01, True), ("gte", 90, True)],
)
def test_operators(op, value, hit):
    warning, critical = _load(f"in_util,{op},90", "out_util,gt,100")
    results = check_thresholds({"in_util": value, "out_util": 0}, warning, critical)
    assert (results[0].status == Severity.WARNING) is hit


def test_perfdata_bounds_prefer_the_metric_own_predicate():
    warning, critical = _load("in_util,gt,80:in_util,gt,90:out_util,gt,85", "out_util,gt,95:in_util,gt,97")
    results = check_thresholds({"in_util": 1, "out_util": 1}, warning, critical)
    by_name = {r.metric: r for r in results}
    assert by_name["in_util"].warn_bound == 80
    assert by_name["in_util"].crit_bound == 97
    assert by_name["out_util"].warn_bound == 85
    assert by_name["out_util"].crit_bound == 95


def test_perfdata_bounds_fall_back_to_first_bound_of_the_level():
    warning, critical = _load("in_util,gt,80:in_util,gt,90", "out_util,gt,95")
    results = check_thresholds({"in_util": 1, "out_util": 1}, warning, critical)
    by_name = {r.metric: r for r in results}
    assert by_name["in_util"].warn_bound == 80
    assert by_name["in_util"].crit_bound == 95
    assert by_name["out_util"].warn_bound == 80
    assert by_name["out_util"].crit_bound == 95


def test_documented_example_output_line():
    warning, critical = _load("in_util,gt,90:out_util,gt,90", "out_util,gt,95")
    results = check_thresholds({"in_util": 93, "out_util": 85}, warning, critical)
    result = ProbeResult(
        severity=overall_severity(results),
        label="SNMP-IF-BW-UTIL FastEthernet0/1",
        metrics=tuple(results),
    )
    assert result.render() == (
        "SNMP-IF-BW-UTIL FastEthernet0/1 WARNING - IN UTIL (93.00% > 90%), "
        "OK - OUT UTIL 85.00% | "
        "'in_util'=93.00%;90;95;0;100 'out_util'=85.00%;90;95;0;100"
    )


def test_evaluation_is_deterministic():
    warning, critical = _load("in_util,gt,90:out_util,gt,90", "out_util,gt,95")
    values = {"in_util": 93, "out_util": 96}
    assert check_thresholds(values, warning, critical) == check_thresholds(values, warning, critical)


def test_overall_severity_of_nothing_is_ok():
    assert overall_severity([]) == Severity.OK
