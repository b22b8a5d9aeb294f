"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from repwatch.config import RepWatchConfig


def test_defaults():
    config = RepWatchConfig()
    assert config.http_timeout == 180
    assert config.clear_delay == 30
    assert config.restart_cooldown == 30
    assert config.verify_ssl is False
    assert config.log_file == "rep.log"
    assert not config.is_complete


def test_urls():
    config = RepWatchConfig(host="10.0.0.1")
    assert config.base_url == "https://10.0.0.1"
    assert config.socket_base_url == "wss://10.0.0.1"


def test_load_yaml(fixtures_dir: Path, monkeypatch: pytest.MonkeyPatch):
    for name in ("HOST", "USERNAME", "PASSWORD", "HTTP_TIMEOUT", "CLEAR_DELAY"):
        monkeypatch.delenv(f"REPWATCH_{name}", raising=False)

    config = RepWatchConfig.load(fixtures_dir / "config.yaml")
    assert config.host == "apic.lab.example.com"
    assert config.username == "repwatch"
    assert config.http_timeout == 60.0
    assert config.clear_delay == 45.0
    assert config.verify_ssl is True
    assert config.password == ""


def test_env_overrides_yaml(fixtures_dir: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("REPWATCH_USERNAME", raising=False)
    monkeypatch.setenv("REPWATCH_HOST", "apic2.example.com")
    monkeypatch.setenv("REPWATCH_PASSWORD", "hunter2")
    monkeypatch.setenv("REPWATCH_CLEAR_DELAY", "90")

    config = RepWatchConfig.load(fixtures_dir / "config.yaml")
    assert config.host == "apic2.example.com"
    assert config.username == "repwatch"
    assert config.password == "hunter2"
    assert config.clear_delay == 90.0


def test_load_rejects_non_mapping(tmp_path: Path):
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        RepWatchConfig.load(path)


def test_update_ignores_unknown_and_none():
    config = RepWatchConfig(host="a")
    config.update({"host": None, "bogus": "x", "clear-delay": "12"})
    assert config.host == "a"
    assert config.clear_delay == 12.0


def test_update_rejects_bad_number():
    config = RepWatchConfig()
    with pytest.raises(ValueError, match="http_timeout"):
        config.update({"http_timeout": "soon"})
