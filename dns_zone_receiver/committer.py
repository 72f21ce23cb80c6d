"""Durable, atomic storage of uploaded zone files.

An upload is streamed into a staging file under the temp directory, synced,
and then renamed over ``{base_dir}/{zone_name}/all.zone``. Readers of the
canonical path see either the previous snapshot or the new one, never a
partial write. The rename is only atomic when the temp directory and the
base directory share a filesystem.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO

from dns_zone_receiver.config import ReceiverConfig
from dns_zone_receiver.errors import (
    InvalidZoneNameError,
    PermissionNormalizationError,
    StorageError,
    UploadTooLargeError,
)

logger = logging.getLogger(__name__)

ZONE_FILE_NAME = "all.zone"
STAGING_PREFIX = "dns-zone-receiver-"
ZONE_FILE_MODE = 0o644
DIR_MODE = 0o755
_CHUNK_SIZE = 64 * 1024
_FORBIDDEN_SUBSTRINGS = ("/", "\\", "\x00", "..")


def validate_zone_name(zone_name: str) -> None:
    """Reject zone identifiers that could escape the base directory."""
    if not zone_name or zone_name in (".", ".."):
        raise InvalidZoneNameError(f"invalid zone name: {zone_name!r}")
    for forbidden in _FORBIDDEN_SUBSTRINGS:
        if forbidden in zone_name:
            raise InvalidZoneNameError(f"invalid zone name: {zone_name!r}")


def zone_path(base_dir: Path, zone_name: str) -> Path:
    return Path(base_dir) / zone_name / ZONE_FILE_NAME


def commit_zone(config: ReceiverConfig, zone_name: str, stream: BinaryIO) -> Path:
    """Persist an uploaded zone file at its canonical path.

    Args:
        config: Receiver configuration (base, temp dir, size limit).
        zone_name: Zone identifier, used as a single path segment.
        stream: Readable binary stream with the zone file content.

    Returns:
        The canonical path the content was committed to.

    Raises:
        InvalidZoneNameError: If zone_name is not a safe path segment.
        UploadTooLargeError: If the stream exceeds config.max_upload_bytes.
        StorageError: If staging, renaming or syncing fails.
        PermissionNormalizationError: If the final chmod fails. The new
            content is committed when this is raised.
    """
    validate_zone_name(zone_name)

    tmp_dir = Path(config.tmp_dir)
    try:
        os.makedirs(tmp_dir, mode=DIR_MODE, exist_ok=True)
    except OSError as error:
        raise StorageError("failed to create temporary directory", str(tmp_dir)) from error

    try:
        fd, staging_path = tempfile.mkstemp(prefix=STAGING_PREFIX, dir=tmp_dir)
    except OSError as error:
        raise StorageError("failed to create temporary file", str(tmp_dir)) from error

    try:
        with os.fdopen(fd, "wb") as staging:
            size = _copy_stream(stream, staging, config.max_upload_bytes, staging_path)
            staging.flush()
            os.fsync(staging.fileno())
        logger.debug(
            "zone file staged",
            extra={"context": {"zone": zone_name, "path": staging_path, "bytes": size}},
        )

        out_path = zone_path(config.base_dir, zone_name)
        try:
            os.makedirs(out_path.parent, mode=DIR_MODE, exist_ok=True)
        except OSError as error:
            raise StorageError("failed to create output directory", str(out_path)) from error

        try:
            os.replace(staging_path, out_path)
        except OSError as error:
            raise StorageError(
                f"failed to rename temporary file {staging_path}", str(out_path)
            ) from error

        try:
            _fsync_directory(out_path.parent)
        except OSError as error:
            raise StorageError("failed to sync output directory", str(out_path)) from error
    except OSError as error:
        raise StorageError("failed to write temporary file", staging_path) from error
    finally:
        _remove_staging(staging_path)

    # mkstemp creates the file 0600
    try:
        os.chmod(out_path, ZONE_FILE_MODE)
    except OSError as error:
        raise PermissionNormalizationError(
            "failed to change file permissions", str(out_path)
        ) from error

    return out_path


def _copy_stream(stream: BinaryIO, staging: BinaryIO, limit: int, staging_path: str) -> int:
    copied = 0
    while True:
        try:
            chunk = stream.read(_CHUNK_SIZE)
        except OSError as error:
            raise StorageError("failed to read upload", staging_path) from error
        if not chunk:
            return copied
        copied += len(chunk)
        if limit and copied > limit:
            raise UploadTooLargeError(f"upload exceeds {limit} bytes")
        try:
            staging.write(chunk)
        except OSError as error:
            raise StorageError("failed to write temporary file", staging_path) from error


def _fsync_directory(path: Path) -> None:
    dir_fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)


def _remove_staging(staging_path: str) -> None:
    try:
        os.remove(staging_path)
    except FileNotFoundError:
        pass
