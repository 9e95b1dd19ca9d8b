import json

import pytest

from app.config import (
    FilterMatchConfig,
    InstallConfig,
    UpdaterConfig,
    default_user_agent,
    get_app_config,
    load_app_config,
    reset_app_config_cache,
)
from services.filter_update import constants


def test_default_config_matches_builtin_constants() -> None:
    config = load_app_config()
    assert isinstance(config, UpdaterConfig)
    assert config.release.api_url == constants.API_URL
    assert config.release.timeout_seconds == pytest.approx(30.0)
    assert config.release.user_agent == default_user_agent()
    assert config.filters == FilterMatchConfig(
        product_marker="NeverSink",
        extension_marker=".filter",
        version_marker="# VERSION:",
        archive_extension=".filter",
    )
    assert config.install == InstallConfig(relative_path=("My Games", "Path of Exile"))


def test_default_user_agent_includes_app_version(monkeypatch) -> None:
    monkeypatch.setattr("app.config.get_app_version", lambda: "2.5.0")

    assert default_user_agent() == "neversink-filter-updater/2.5.0"


def test_load_app_config_from_custom_path(tmp_path) -> None:
    custom_config = {
        "release": {
            "api_url": "https://mirror.invalid/releases/latest",
            "user_agent": "my-updater/0.1",
            "timeout_seconds": "12.5",
        },
        "filters": {"product_marker": "FilterBlade"},
        "install": {"relative_path": ["My Games", "Path of Exile 2"]},
    }
    config_path = tmp_path / "app.json"
    config_path.write_text(json.dumps(custom_config), encoding="utf-8")

    config = load_app_config(config_path)
    assert config.release.api_url == "https://mirror.invalid/releases/latest"
    assert config.release.user_agent == "my-updater/0.1"
    assert config.release.timeout_seconds == pytest.approx(12.5)
    assert config.filters.product_marker == "FilterBlade"
    assert config.filters.extension_marker == ".filter"
    assert config.install.relative_path == ("My Games", "Path of Exile 2")


def test_invalid_config_values_fall_back_to_defaults(tmp_path) -> None:
    invalid_config = {
        "release": {"api_url": "   ", "timeout_seconds": -3},
        "filters": {"version_marker": 7, "archive_extension": ""},
        "install": {"relative_path": ["My Games", ""]},
    }
    config_path = tmp_path / "app.json"
    config_path.write_text(json.dumps(invalid_config), encoding="utf-8")

    config = load_app_config(config_path)
    assert config.release.api_url == constants.API_URL
    assert config.release.timeout_seconds == pytest.approx(constants.DEFAULT_TIMEOUT_SECONDS)
    assert config.filters.version_marker == constants.VERSION_MARKER
    assert config.filters.archive_extension == constants.ARCHIVE_EXTENSION
    assert config.install.relative_path == constants.INSTALL_RELATIVE_PATH


@pytest.mark.parametrize("contents", ["{broken", "[1, 2, 3]", ""])
def test_unusable_config_files_yield_defaults(tmp_path, contents) -> None:
    config_path = tmp_path / "app.json"
    config_path.write_text(contents, encoding="utf-8")

    assert load_app_config(config_path) == load_app_config()


def test_missing_config_file_yields_defaults(tmp_path) -> None:
    assert load_app_config(tmp_path / "absent.json") == load_app_config()


def test_get_app_config_uses_cached_config(monkeypatch, tmp_path) -> None:
    config_path = tmp_path / "app.json"
    config_path.write_text(json.dumps({"release": {"timeout_seconds": 5}}), encoding="utf-8")

    original_loader = load_app_config

    def _load_override(path=None):  # noqa: ANN001 - signature dictated by monkeypatch
        return original_loader(config_path)

    reset_app_config_cache()
    monkeypatch.setattr("app.config.load_app_config", _load_override)

    first = get_app_config()
    assert first.release.timeout_seconds == pytest.approx(5.0)

    config_path.write_text(json.dumps({"release": {"timeout_seconds": 60}}), encoding="utf-8")

    second = get_app_config()
    assert second is first
    assert second.release.timeout_seconds == pytest.approx(5.0)
