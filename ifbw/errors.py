"""
Exceptions raised by the probe.

Anything derived from ProbeError aborts the run and is reported with the
UNKNOWN status. Interface problems found on the device (link down, wrong
duplex) are not errors: they come back as CRITICAL results.
"""


class ProbeError(Exception):
    """Base class for failures that prevent the probe from forming a verdict."""


class ConfigurationError(ProbeError):
    """Bad arguments, bad thresholds, or a device that can't be probed as asked."""


class SnmpError(ProbeError):
    """Raised when SNMP retrieval fails."""
