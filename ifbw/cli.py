"""
Command line for the probe.

    snmp-if-bw -H myrouter -i FastEthernet0/1 -M 10m \\
        -w 'in_util,gt,90:out_util,gt,90' -c 'out_util,gt,95'

Prints exactly one line on stdout and exits 0/1/2/3 for
OK/WARNING/CRITICAL/UNKNOWN. Debug output goes to stderr.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from ifbw.config import Settings, get_settings
from ifbw.errors import ConfigurationError, ProbeError
from ifbw.models import Severity
from ifbw.probe import LABEL, ProbeOptions, run_probe
from ifbw.snmp_client import open_client

logger = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors are UNKNOWN (3), not argparse's exit status 2."""

    def error(self, message: str) -> None:
        raise ConfigurationError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="snmp-if-bw",
        description="Check bandwidth utilization of an interface on a device "
                    "that implements IF-MIB.",
    )
    parser.add_argument("-H", "--hostname", help="Device to query (default: SNMP_HOST)")
    parser.add_argument("-p", "--port", type=int, help="SNMP port (default: SNMP_PORT)")
    parser.add_argument("-C", "--community", help="Community string (default: SNMP_COMMUNITY)")
    parser.add_argument("--snmp-version", help="1, 2c or 3 (default: SNMP_VERSION)")
    parser.add_argument("-t", "--timeout", type=float, help="Per-request timeout in seconds")
    parser.add_argument("-u", "--username", help="SNMPv3 security name")
    parser.add_argument("-A", "--auth-password", help="SNMPv3 authentication password")
    parser.add_argument("-X", "--priv-password", help="SNMPv3 privacy password")
    parser.add_argument("--auth-protocol", choices=("md5", "sha"), help="SNMPv3 auth protocol")
    parser.add_argument("--priv-protocol", choices=("des", "aes"), help="SNMPv3 privacy protocol")
    parser.add_argument(
        "-i", "--interface", required=True,
        help="Name of the interface, as returned by ifDescr",
    )
    parser.add_argument("-w", "--warning", required=True, help="Warning threshold spec")
    parser.add_argument("-c", "--critical", required=True, help="Critical threshold spec")
    parser.add_argument(
        "-M", "--max-speed",
        help="Maximum speed of the interface, e.g. 10m, 1g, 512k; "
             "defaults to ifSpeed",
    )
    parser.add_argument(
        "-S", "--sleep-time", type=int,
        help="Seconds to sleep between samples (default: SLEEP_TIME or 10)",
    )
    duplex = parser.add_mutually_exclusive_group()
    duplex.add_argument(
        "--half-duplex", action="store_true",
        help="Interface should be in half duplex instead of full duplex",
    )
    duplex.add_argument(
        "--no-duplex-check", action="store_true",
        help="Do not check duplex; for devices without EtherLike-MIB",
    )
    parser.add_argument(
        "--hc-counters", action="store_true",
        help="Use the 64-bit ifHCInOctets/ifHCOutOctets counters",
    )
    parser.add_argument(
        "--stub", action="store_true",
        help="Probe the in-memory demo device instead of a real one",
    )
    parser.add_argument(
        "-d", "--snmp-debug", action="store_true",
        help="Write a debug trace to stderr",
    )
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {
        "snmp_host": args.hostname,
        "snmp_port": args.port,
        "snmp_community": args.community,
        "snmp_version": args.snmp_version,
        "snmp_timeout": args.timeout,
        "snmp_username": args.username,
        "snmp_auth_password": args.auth_password,
        "snmp_priv_password": args.priv_password,
        "snmp_auth_protocol": args.auth_protocol,
        "snmp_priv_protocol": args.priv_protocol,
        "sleep_time": args.sleep_time,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if args.stub:
        overrides["use_snmp_stub"] = True
    if args.snmp_debug:
        overrides["log_level"] = "DEBUG"
    return get_settings(**overrides)


def _options_from_args(args: argparse.Namespace, settings: Settings) -> ProbeOptions:
    return ProbeOptions(
        interface=args.interface,
        warning=args.warning,
        critical=args.critical,
        max_speed=args.max_speed or None,
        sleep_time=settings.sleep_time,
        half_duplex=args.half_duplex,
        check_duplex=not args.no_duplex_check,
        high_capacity=args.hc_counters,
    )


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    try:
        args = build_parser().parse_args(argv)
        settings = _settings_from_args(args)
        _configure_logging(settings.log_level)
        options = _options_from_args(args, settings)

        with open_client(settings) as client:
            result = run_probe(client, options)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        print(f"{LABEL} {Severity.UNKNOWN.name} - Invalid configuration: {errors}")
        return int(Severity.UNKNOWN)
    except ProbeError as exc:
        logger.debug("Probe aborted", exc_info=True)
        print(f"{LABEL} {Severity.UNKNOWN.name} - {exc}")
        return int(Severity.UNKNOWN)
    except Exception as exc:
        logger.exception("Unexpected error while probing")
        print(f"{LABEL} {Severity.UNKNOWN.name} - Unexpected error: {exc.__class__.__name__}: {exc}")
        return int(Severity.UNKNOWN)

    print(result.render())
    return int(result.severity)
