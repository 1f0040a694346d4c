"""
Configuration for the SNMP interface bandwidth probe.

We use pydantic-settings (Pydantic v2) to load settings from:
- environment variables
- a local `.env` file in the working directory

Command-line options always win over these values; settings only provide
the defaults the command line falls back to.
"""

from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SNMP_VERSIONS = ("1", "2c", "3")


class Settings(BaseSettings):
    """
    Probe-wide settings.

    Environment variables (with defaults):

    - SNMP_HOST:       IP/address of the SNMP device (default: 127.0.0.1)
    - SNMP_PORT:       UDP port for SNMP (default: 161)
    - SNMP_COMMUNITY:  community string (default: "public")
    - SNMP_VERSION:    "1", "2c" or "3" (default: "2c")
    - SNMP_TIMEOUT:    per-request timeout in seconds (default: 5)
    - SNMP_USERNAME:   SNMPv3 security name
    - SNMP_AUTH_PASSWORD / SNMP_PRIV_PASSWORD: SNMPv3 keys; which ones
      are set picks noAuthNoPriv, authNoPriv or authPriv
    - SNMP_AUTH_PROTOCOL: "md5" or "sha" (default: "sha")
    - SNMP_PRIV_PROTOCOL: "des" or "aes" (default: "aes")
    - SLEEP_TIME:      seconds between the two counter samples (default: 10)
    - USE_SNMP_STUB:   "1" or "0" to probe an in-memory demo device
    - LOG_LEVEL:       logging level for the stderr debug trace
    """

    snmp_host: str = "127.0.0.1"
    snmp_port: int = 161
    snmp_community: str = "public"
    snmp_version: str = "2c"
    snmp_timeout: float = 5.0

    snmp_username: Optional[str] = None
    snmp_auth_password: Optional[str] = None
    snmp_priv_password: Optional[str] = None
    snmp_auth_protocol: Literal["md5", "sha"] = "sha"
    snmp_priv_protocol: Literal["des", "aes"] = "aes"

    sleep_time: int = 10

    use_snmp_stub: bool = False

    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("snmp_version", mode="before")
    @classmethod
    def parse_snmp_version(cls, v):
        """
        Accept the spellings people actually type:

        - "2c", "v2c", "2"  -> "2c"
        - "1", "v1", 1      -> "1"
        - "3", "v3", 3      -> "3"
        """
        text = str(v).strip().lower().lstrip("v")
        if text == "2":
            text = "2c"
        if text not in SNMP_VERSIONS:
            raise ValueError(f"unsupported SNMP version {v!r}, use 1, 2c or 3")
        return text

    @field_validator("snmp_auth_protocol", "snmp_priv_protocol", mode="before")
    @classmethod
    def parse_protocol(cls, v):
        return str(v).strip().lower()

    @field_validator("log_level", mode="before")
    @classmethod
    def parse_log_level(cls, v):
        return str(v).strip().upper()


def get_settings(**overrides) -> Settings:
    """Build a fresh Settings object; every probe run gets its own."""
    return Settings(**overrides)
