"""
Multi-metric threshold expressions.

An expression is one or more `metric,op,bound` groups joined with ':'.
Groups are OR'd: the expression matches as soon as any group does.

    in_util,gt,90:out_util,gt,90

Operators: lt (<), lte (<=), gt (>), gte (>=).

Warning and critical expressions are parsed separately. Evaluation checks
critical first; a metric is CRITICAL if any critical group for it matches,
otherwise WARNING if any warning group matches, otherwise OK.
"""

import logging
import math
from typing import Iterable, List, Mapping, Optional, Tuple

from ifbw.errors import ConfigurationError
from ifbw.models import Comparison, MetricResult, Predicate, Severity, ThresholdSet

logger = logging.getLogger(__name__)


def parse_thresholds(expr: str, metrics: Iterable[str]) -> Tuple[ThresholdSet, List[str]]:
    """
    Parse an expression against the set of known metric names.

    Returns the predicates that parsed cleanly together with every error
    found; callers must treat a non-empty error list as fatal.
    """
    known = set(metrics)
    predicates: List[Predicate] = []
    errors: List[str] = []

    for group in expr.split(":"):
        group = group.strip()
        if not group:
            continue

        fields = [f.strip() for f in group.split(",")]
        if len(fields) != 3:
            errors.append(f"invalid threshold '{group}', expected metric,op,number")
            continue

        metric, op_token, bound_token = fields
        group_ok = True

        if metric not in known:
            errors.append(f"unknown metric '{metric}' in '{group}'")
            group_ok = False

        try:
            op = Comparison(op_token.lower())
        except ValueError:
            errors.append(f"unknown operator '{op_token}' in '{group}'")
            group_ok = False

        try:
            bound = float(bound_token)
            if not math.isfinite(bound):
                raise ValueError(bound_token)
        except ValueError:
            errors.append(f"invalid bound '{bound_token}' in '{group}'")
            group_ok = False

        if group_ok:
            predicates.append(Predicate(metric=metric, op=op, bound=bound))

    return ThresholdSet(predicates=tuple(predicates)), errors


def load_thresholds(
    warning: str, critical: str, metrics: Iterable[str]
) -> Tuple[ThresholdSet, ThresholdSet]:
    """Parse both expressions, raising ConfigurationError on the first bad one."""
    metrics = list(metrics)
    parsed = []

    for level, expr in (("warning", warning), ("critical", critical)):
        if not expr or not expr.strip():
            raise ConfigurationError(f"Missing {level} threshold!")
        thresholds, errors = parse_thresholds(expr, metrics)
        if errors:
            raise ConfigurationError(
                f"Invalid {level} threshold specified: " + ", ".join(errors)
            )
        if not thresholds.predicates:
            raise ConfigurationError(f"Missing {level} threshold!")
        logger.debug("Parsed %s threshold: %s", level, thresholds.predicates)
        parsed.append(thresholds)

    return parsed[0], parsed[1]


def _first_match(predicates: Tuple[Predicate, ...], value: float) -> Optional[Predicate]:
    for predicate in predicates:
        if predicate.matches(value):
            return predicate
    return None


def _perf_bound(own: Tuple[Predicate, ...], thresholds: ThresholdSet) -> Optional[float]:
    """First bound for the metric, else the first bound of the whole expression."""
    if own:
        return own[0].bound
    if thresholds.predicates:
        return thresholds.predicates[0].bound
    return None


def check_thresholds(
    values: Mapping[str, float],
    warning: ThresholdSet,
    critical: ThresholdSet,
) -> List[MetricResult]:
    """Evaluate every tracked metric; one MetricResult per entry of `values`."""
    results: List[MetricResult] = []

    for metric, value in values.items():
        warn_preds = warning.for_metric(metric)
        crit_preds = critical.for_metric(metric)

        crit_hit = _first_match(crit_preds, value)
        warn_hit = _first_match(warn_preds, value)

        if crit_hit is not None:
            status, matched = Severity.CRITICAL, crit_hit
        elif warn_hit is not None:
            status, matched = Severity.WARNING, warn_hit
        else:
            status, matched = Severity.OK, None

        logger.debug(
            "%s=%s critical=%s warning=%s -> %s",
            metric, value, crit_hit, warn_hit, status.name,
        )

        results.append(
            MetricResult(
                metric=metric,
                value=value,
                status=status,
                matched=matched,
                warn_bound=_perf_bound(warn_preds, warning),
                crit_bound=_perf_bound(crit_preds, critical),
            )
        )

    return results


def overall_severity(results: Iterable[MetricResult]) -> Severity:
    return max((r.status for r in results), default=Severity.OK)
