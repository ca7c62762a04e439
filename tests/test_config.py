import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from linkdump.config import settings as settings_module
from linkdump.config.loaders import load_config, load_run_config
from linkdump.config.settings import Settings, get_settings
from linkdump.services.selection import Selection


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in (
        "DATABASE_URL",
        "LINKDUMP_DATA_DIR",
        "LOG_LEVEL",
        "LINKDUMP_TITLE_PREFIX",
        "LINKDUMP_DATE_SOURCE",
        "XDG_DATA_HOME",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(settings_module, "_settings", None)


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))
    settings = Settings()
    assert settings.title_prefix == "Reading: "
    assert settings.date_source == "published_at"
    assert settings.resolved_database_url() == (
        f"sqlite:///{tmp_path / 'xdg' / 'linkdump' / 'linkdump.sqlite3'}"
    )


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("LINKDUMP_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("LINKDUMP_DATE_SOURCE", "found_at")
    settings = Settings()
    assert settings.date_source == "found_at"
    assert settings.resolved_database_url().endswith("data/linkdump.sqlite3")

    monkeypatch.setenv("DATABASE_URL", "sqlite:///explicit.db")
    assert Settings().resolved_database_url() == "sqlite:///explicit.db"


def test_invalid_date_source_is_rejected(monkeypatch):
    monkeypatch.setenv("LINKDUMP_DATE_SOURCE", "yesterday")
    with pytest.raises(ValidationError):
        Settings()


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_load_config_yaml_and_json(tmp_path):
    (tmp_path / "run.yaml").write_text("output: site\nforce: true\n", encoding="utf-8")
    (tmp_path / "run.json").write_text(json.dumps({"tag": "rust"}), encoding="utf-8")

    assert load_config(tmp_path / "run.yaml") == {"output": "site", "force": True}
    assert load_config(tmp_path / "run.json") == {"tag": "rust"}


def test_load_config_rejects_other_formats(tmp_path):
    (tmp_path / "run.toml").write_text("", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(tmp_path / "run.toml")
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_run_config_paths_are_relative_to_the_file(tmp_path):
    config_dir = tmp_path / "conf"
    config_dir.mkdir()
    (config_dir / "run.yaml").write_text(
        "inputs: [dumps, /abs/week.md]\noutput: ../site\nselection: tag\ntag: rust\n",
        encoding="utf-8",
    )

    config = load_run_config(config_dir / "run.yaml")

    assert config.inputs == [config_dir.resolve() / "dumps", Path("/abs/week.md")]
    assert config.output == config_dir.resolve() / "../site"
    assert config.selection is Selection.tag
    assert config.tag == "rust"


def test_missing_run_config_gives_defaults():
    config = load_run_config(None)
    assert config.inputs == []
    assert config.selection is Selection.unpublished
    assert not config.force
