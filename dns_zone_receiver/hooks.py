"""Post-commit hook execution.

The hook command is split on whitespace and run without a shell. The zone
name reaches the child only through the DNS_ZONE_RECEIVER_ZONENAME
environment variable. Combined stdout/stderr is logged line by line while the
hook runs, and the whole process group is killed once the timeout expires.
"""

from __future__ import annotations

import logging
import os
import selectors
import signal
import subprocess
import threading
from typing import BinaryIO

from dns_zone_receiver.errors import HookExecutionError, HookTimeoutError

logger = logging.getLogger(__name__)

ZONE_NAME_ENV_KEY = "DNS_ZONE_RECEIVER_ZONENAME"

# How long to keep draining output after the hook exits. Grandchildren that
# left the process group can hold the pipe open indefinitely.
_DRAIN_GRACE_SECONDS = 1.0
_POLL_INTERVAL_SECONDS = 0.1
_READ_SIZE = 4096


def run_hook(command_line: str, timeout: float, zone_name: str) -> None:
    """Run the post-commit hook for a zone.

    Args:
        command_line: Whitespace-separated executable and arguments. Empty
            means no hook is configured.
        timeout: Seconds before the hook's process group is killed.
        zone_name: Zone identifier exported to the child environment.

    Raises:
        HookTimeoutError: If the hook was killed by the timeout.
        HookExecutionError: If the hook could not be started or exited
            with a non-zero status.
    """
    args = command_line.split() if command_line else []
    if not args:
        return

    env = dict(os.environ)
    env[ZONE_NAME_ENV_KEY] = zone_name

    try:
        process = subprocess.Popen(
            args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            env=env,
            start_new_session=True,
        )
    except OSError as error:
        raise HookExecutionError(f"start command: {error}") from error

    logger.debug(
        "post hook started",
        extra={"context": {"zone": zone_name, "command": args[0], "pid": process.pid}},
    )

    timed_out = threading.Event()
    stop_reading = threading.Event()

    def _on_deadline() -> None:
        if process.returncode is None:
            timed_out.set()
            _kill_process_group(process)
            stop_reading.set()

    timer = threading.Timer(timeout, _on_deadline)
    timer.daemon = True
    reader = threading.Thread(
        target=_drain_output,
        args=(process.stdout, zone_name, stop_reading),
        name=f"hook-output-{process.pid}",
        daemon=True,
    )

    timer.start()
    reader.start()
    try:
        returncode = process.wait()
    finally:
        timer.cancel()
        timer.join()
        reader.join(_DRAIN_GRACE_SECONDS)
        if reader.is_alive():
            logger.warning(
                "post hook output still open after exit",
                extra={"context": {"zone": zone_name, "pid": process.pid}},
            )
            stop_reading.set()
            reader.join()
        process.stdout.close()

    if timed_out.is_set() and returncode != 0:
        raise HookTimeoutError(f"hook timed out after {timeout:g}s")
    if returncode != 0:
        raise HookExecutionError(f"hook exited with status {returncode}", returncode)

    logger.info("post hook completed", extra={"context": {"zone": zone_name}})


def _drain_output(stream: BinaryIO, zone_name: str, stop: threading.Event) -> None:
    fd = stream.fileno()
    pending = b""
    with selectors.DefaultSelector() as selector:
        selector.register(fd, selectors.EVENT_READ)
        while not stop.is_set():
            if not selector.select(_POLL_INTERVAL_SECONDS):
                continue
            chunk = os.read(fd, _READ_SIZE)
            if not chunk:
                break
            pending += chunk
            *lines, pending = pending.split(b"\n")
            for line in lines:
                _log_line(line, zone_name)
    if pending:
        _log_line(pending, zone_name)


def _log_line(raw_line: bytes, zone_name: str) -> None:
    line = raw_line.decode("utf-8", errors="replace").rstrip("\r")
    logger.info("post hook output", extra={"context": {"zone": zone_name, "line": line}})


def _kill_process_group(process: subprocess.Popen) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
