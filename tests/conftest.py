"""Shared fixtures for receiver tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from dns_zone_receiver.config import ReceiverConfig
from dns_zone_receiver.service import create_app


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    path = tmp_path / "zones"
    path.mkdir()
    return path


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    return tmp_path / "staging"


@pytest.fixture
def config(base_dir: Path, staging_dir: Path) -> ReceiverConfig:
    return ReceiverConfig(base_dir=base_dir, tmp_dir=staging_dir)


@pytest.fixture
def client(config: ReceiverConfig):
    app = create_app(config)
    app.config["TESTING"] = True
    return app.test_client()
