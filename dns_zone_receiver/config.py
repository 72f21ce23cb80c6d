"""Runtime configuration for the zone receiver.

All environment parsing happens here, once, at startup. The rest of the
package receives an immutable ReceiverConfig.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from dns_zone_receiver.errors import ConfigError

BASE_DIR_ENV_KEY = "DNS_ZONE_RECEIVER_BASE_DIR"
LISTEN_ADDR_ENV_KEY = "DNS_ZONE_RECEIVER_LISTEN_ADDR"
TMP_DIR_ENV_KEY = "DNS_ZONE_RECEIVER_TMP_DIR"
LOG_LEVEL_ENV_KEY = "DNS_ZONE_RECEIVER_LOG_LEVEL"
POST_HOOK_ENV_KEY = "DNS_ZONE_RECEIVER_POST_HOOK"
POST_HOOK_TIMEOUT_ENV_KEY = "DNS_ZONE_RECEIVER_POST_HOOK_TIMEOUT"
MAX_UPLOAD_BYTES_ENV_KEY = "DNS_ZONE_RECEIVER_MAX_UPLOAD_BYTES"

DEFAULT_LISTEN_ADDR = "127.0.0.1:8080"
DEFAULT_TMP_DIR = "/tmp"
DEFAULT_LOG_LEVEL = "info"
DEFAULT_POST_HOOK_TIMEOUT = 10.0


@dataclass(frozen=True)
class ReceiverConfig:
    """Validated receiver configuration.

    Attributes:
        base_dir: Root directory holding one subdirectory per zone.
        tmp_dir: Directory for staging files. Must be on the same
            filesystem as base_dir for the commit rename to be atomic.
        listen_host: Address the HTTP server binds to.
        listen_port: Port the HTTP server binds to.
        log_level: Log level name, resolved by logging_config.
        post_hook: Hook command line, empty when disabled.
        post_hook_timeout: Seconds before the hook is killed.
        max_upload_bytes: Upload size cap in bytes, 0 for unlimited.
    """

    base_dir: Path
    tmp_dir: Path = Path(DEFAULT_TMP_DIR)
    listen_host: str = "127.0.0.1"
    listen_port: int = 8080
    log_level: str = DEFAULT_LOG_LEVEL
    post_hook: str = ""
    post_hook_timeout: float = DEFAULT_POST_HOOK_TIMEOUT
    max_upload_bytes: int = 0

    @property
    def listen_addr(self) -> str:
        if ":" in self.listen_host:
            return f"[{self.listen_host}]:{self.listen_port}"
        return f"{self.listen_host}:{self.listen_port}"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ReceiverConfig":
        """Build config from environment variables.

        Args:
            environ: Mapping to read from, defaults to os.environ.

        Returns:
            A validated config object.

        Raises:
            ConfigError: If the base directory is unset or a value is invalid.
        """
        env = os.environ if environ is None else environ
        base_dir = env.get(BASE_DIR_ENV_KEY, "")
        if not base_dir:
            raise ConfigError(f"{BASE_DIR_ENV_KEY} is not set")
        host, port = parse_listen_addr(env.get(LISTEN_ADDR_ENV_KEY) or DEFAULT_LISTEN_ADDR)
        return cls(
            base_dir=Path(base_dir),
            tmp_dir=Path(env.get(TMP_DIR_ENV_KEY) or DEFAULT_TMP_DIR),
            listen_host=host,
            listen_port=port,
            log_level=env.get(LOG_LEVEL_ENV_KEY) or DEFAULT_LOG_LEVEL,
            post_hook=env.get(POST_HOOK_ENV_KEY, "").strip(),
            post_hook_timeout=_parse_timeout(env.get(POST_HOOK_TIMEOUT_ENV_KEY)),
            max_upload_bytes=_parse_max_upload_bytes(env.get(MAX_UPLOAD_BYTES_ENV_KEY)),
        )


def parse_listen_addr(raw_value: str) -> tuple[str, int]:
    """Split a host:port listen address.

    IPv6 hosts are written in brackets, e.g. ``[::1]:8080``.

    Raises:
        ConfigError: If the address has no port or the port is invalid.
    """
    host, sep, port_value = raw_value.strip().rpartition(":")
    if not sep or not host:
        raise ConfigError(
            f"Invalid {LISTEN_ADDR_ENV_KEY} value: expected host:port, got '{raw_value}'"
        )
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(port_value)
    except ValueError as error:
        raise ConfigError(
            f"Invalid {LISTEN_ADDR_ENV_KEY} port: expected integer, got '{port_value}'"
        ) from error
    if not 0 < port < 65536:
        raise ConfigError(f"Invalid {LISTEN_ADDR_ENV_KEY} port: {port} is out of range")
    return host, port


def _parse_timeout(raw_value: str | None) -> float:
    if not raw_value:
        return DEFAULT_POST_HOOK_TIMEOUT
    try:
        timeout = float(raw_value)
    except ValueError as error:
        raise ConfigError(
            f"Invalid {POST_HOOK_TIMEOUT_ENV_KEY} value: expected seconds, got '{raw_value}'"
        ) from error
    if timeout <= 0:
        raise ConfigError(f"Invalid {POST_HOOK_TIMEOUT_ENV_KEY} value: must be positive")
    return timeout


def _parse_max_upload_bytes(raw_value: str | None) -> int:
    if not raw_value:
        return 0
    try:
        limit = int(raw_value)
    except ValueError as error:
        raise ConfigError(
            f"Invalid {MAX_UPLOAD_BYTES_ENV_KEY} value: expected integer, got '{raw_value}'"
        ) from error
    if limit < 0:
        raise ConfigError(f"Invalid {MAX_UPLOAD_BYTES_ENV_KEY} value: must not be negative")
    return limit
