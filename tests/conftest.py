from __future__ import annotations

from pathlib import Path

import pytest

from agentline.config import ENV_API_TOKEN, ENV_API_URL, ENV_CONFIG_DIR
from fakes import FakeGateway


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    config_root = tmp_path / "agentline-config"
    monkeypatch.setenv(ENV_CONFIG_DIR, str(config_root))
    monkeypatch.delenv(ENV_API_TOKEN, raising=False)
    monkeypatch.delenv(ENV_API_URL, raising=False)
    return {"config_root": config_root}


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()
