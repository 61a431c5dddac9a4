"""Root test configuration for shhoook.

Clears the environment overrides read by load_config() and runs every test
from an empty working directory, so a developer's ./shhoook.yaml or exported
LISTEN_ADDR never leaks into a test.

Shared helpers:
  make_endpoint     — fixture: build an Endpoint from keyword overrides
  write_definition  — fixture: write a definition file into a conf dir
"""

from __future__ import annotations

import json
import os
from typing import Any, Callable

import pytest
import yaml

from shhoook.endpoints.loader import build_endpoint
from shhoook.endpoints.model import Endpoint

_ENV_OVERRIDES = ("SHHOOOK_CONFIG", "LISTEN_ADDR", "CONFIG_DIR", "LOG_LEVEL", "JSON_LOGS")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> None:
    """Strip config env vars and chdir into an empty directory."""
    for name in _ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)


def _make_endpoint(**overrides: Any) -> Endpoint:
    raw: dict[str, Any] = {
        "uri": "/run/:id",
        "method": "GET",
        "auth": "X-Token:abc",
        "script": ["bash", "-c", "echo id={id}"],
    }
    raw.update(overrides)
    return build_endpoint(raw, source=f"{raw['uri']}.json")


@pytest.fixture
def make_endpoint() -> Callable[..., Endpoint]:
    """Build a valid Endpoint; keyword arguments override definition fields."""
    return _make_endpoint


@pytest.fixture
def conf_dir(tmp_path: Any) -> Any:
    directory = tmp_path / "conf"
    directory.mkdir()
    return directory


@pytest.fixture
def write_definition(conf_dir: Any) -> Callable[..., str]:
    """Return a writer: write_definition("name.json", {...}) → file path."""

    def _write(name: str, raw: Any) -> str:
        path = conf_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if name.lower().endswith(".json"):
            text = raw if isinstance(raw, str) else json.dumps(raw)
        else:
            text = raw if isinstance(raw, str) else yaml.safe_dump(raw)
        path.write_text(text, encoding="utf-8")
        return os.fspath(path)

    return _write
