# tests/core/test_config_management.py
import json

import pytest
from pydantic import ValidationError

from webapp2worker.managers.config_manager import ConfigManager
from webapp2worker.utils.path_utils import PathUtils

# Een standaard, voorspelbare configuratie voor onze tests
MOCK_SETTINGS_CONTENT = {
    "debug": {
        "level": "WARNING"
    },
    "session": {
        "concurrency": 4,
        "time_out": 10
    },
    "runtime": {
        "message_marker": "TESTMARKER=",
        "base_href": "https://example.com/"
    }
}


@pytest.fixture
def config_manager(tmp_path, monkeypatch):
    """
    Een fixture die een geïsoleerde testomgeving opzet voor de ConfigManager:
    - Plaatst een nep 'settings.json' bestand in een tijdelijke map.
    - Monkeypatched PathUtils om naar dit bestand te wijzen.
    - Herlaadt na de test de echte configuratie.
    """
    settings_file = tmp_path / "settings.json"
    settings_file.write_text(json.dumps(MOCK_SETTINGS_CONTENT))
    monkeypatch.setattr(PathUtils, "get_settings_file", lambda: settings_file)

    manager = ConfigManager()
    manager.reset()  # Forceer herladen vanuit ons nep-bestand
    yield manager

    monkeypatch.undo()
    manager.reset()


def test_config_manager_is_singleton():
    assert ConfigManager() is ConfigManager()


def test_config_manager_load(config_manager):
    """Test of de manager de configuratie correct laadt."""
    config = config_manager.get_all()
    assert config["debug"]["level"] == "WARNING"
    assert config["session"]["concurrency"] == 4


def test_config_manager_get_nested(config_manager):
    """Test het ophalen van geneste waarden."""
    assert config_manager.get_nested("session.time_out") == 10
    assert config_manager.get_nested("non.existent.key", "default") == "default"
    assert config_manager.get_nested("debug.level.deeper", "x") == "x"


def test_config_manager_set_nested(config_manager):
    """Test het aanpassen van waarden in het geheugen, inclusief type-casting."""
    config_manager.set_nested("debug.level", "INFO")
    assert config_manager.get_nested("debug.level") == "INFO"

    config_manager.set_nested("parser.features", "html5lib")
    assert config_manager.get_nested("parser.features") == "html5lib"

    config_manager.set_nested("session.concurrency", "20")
    assert config_manager.get_nested("session.concurrency") == 20


def test_config_manager_reset(config_manager):
    """Test of de reset-functie de configuratie herlaadt vanaf schijf."""
    config_manager.set_nested("debug.level", "DEBUG")
    config_manager.reset()
    assert config_manager.get_nested("debug.level") == "WARNING"


def test_missing_settings_file_gives_empty_config(tmp_path, monkeypatch):
    monkeypatch.setattr(PathUtils, "get_settings_file", lambda: tmp_path / "absent.json")
    manager = ConfigManager()
    manager.reset()
    try:
        assert manager.get_all() == {}
        # Runtime settings fall back to their defaults.
        assert manager.runtime_settings().message_marker == "BRANEWORKERMESSAGE="
    finally:
        monkeypatch.undo()
        manager.reset()


def test_runtime_settings_from_config(config_manager):
    settings = config_manager.runtime_settings()
    assert settings.message_marker == "TESTMARKER="
    assert settings.base_href == "https://example.com/"
    assert settings.adapter == "worker"


def test_runtime_settings_validation(config_manager):
    config_manager.set_nested("runtime.message_marker", "")
    with pytest.raises(ValidationError):
        config_manager.runtime_settings()


def test_shipped_settings_are_valid():
    """Test dat het meegeleverde settings.json geldige runtime-instellingen bevat."""
    with open(PathUtils.get_settings_file(), encoding="utf-8") as f:
        shipped = json.load(f)
    assert shipped["runtime"]["message_marker"] == "BRANEWORKERMESSAGE="
    assert shipped["output"]["suffix"] == ".worker.js"
