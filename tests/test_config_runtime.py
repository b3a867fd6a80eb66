"""Tests for runtime configuration layering."""

import json

import pytest

from codebrowser.config_runtime import DEFAULTS, load_runtime_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for section in ("paths", "limits", "extensions"):
        for key in DEFAULTS[section]:
            monkeypatch.delenv(f"CODEBROWSER_{section.upper()}_{key.upper()}", raising=False)


def write_config(root, payload):
    config_dir = root / ".codebrowser"
    config_dir.mkdir(exist_ok=True)
    (config_dir / "config.json").write_text(payload if isinstance(payload, str) else json.dumps(payload))


def test_defaults(tmp_path):
    cfg = load_runtime_config(str(tmp_path))
    assert cfg["paths"]["builtin_includes"] == "/builtins"
    assert cfg["paths"]["data_path"] == "../data"
    assert cfg["extensions"]["headers"] == [".h", ".H", ".hh", ".hpp"]
    assert cfg["system_projects"] == {"include": "/usr/include/"}
    assert cfg["limits"]["workers"] >= 1


def test_file_overrides_defaults(tmp_path):
    write_config(
        tmp_path,
        {
            "limits": {"workers": 3},
            "extensions": {"headers": [".h"]},
            "system_projects": {"qt": "/opt/qt/include/"},
        },
    )
    cfg = load_runtime_config(str(tmp_path))
    assert cfg["limits"]["workers"] == 3
    assert cfg["extensions"]["headers"] == [".h"]
    assert cfg["system_projects"] == {"include": "/usr/include/", "qt": "/opt/qt/include/"}


def test_wrongly_typed_values_are_ignored(tmp_path):
    write_config(tmp_path, {"limits": {"workers": "many"}, "paths": {"unknown": "x"}})
    cfg = load_runtime_config(str(tmp_path))
    assert cfg["limits"]["workers"] == DEFAULTS["limits"]["workers"]
    assert "unknown" not in cfg["paths"]


def test_malformed_file_falls_back_to_defaults(tmp_path):
    write_config(tmp_path, "{not json")
    assert load_runtime_config(str(tmp_path))["paths"]["builtin_includes"] == "/builtins"


def test_environment_wins_over_file(tmp_path, monkeypatch):
    write_config(tmp_path, {"limits": {"workers": 3}})
    monkeypatch.setenv("CODEBROWSER_LIMITS_WORKERS", "7")
    monkeypatch.setenv("CODEBROWSER_EXTENSIONS_DOC_SOURCES", ".qdoc, .dox")
    monkeypatch.setenv("CODEBROWSER_PATHS_DATA_PATH", "https://cdn.example.org/data")

    cfg = load_runtime_config(str(tmp_path))

    assert cfg["limits"]["workers"] == 7
    assert cfg["extensions"]["doc_sources"] == [".qdoc", ".dox"]
    assert cfg["paths"]["data_path"] == "https://cdn.example.org/data"


def test_invalid_environment_value_keeps_previous(tmp_path, monkeypatch):
    monkeypatch.setenv("CODEBROWSER_LIMITS_WORKERS", "lots")
    assert load_runtime_config(str(tmp_path))["limits"]["workers"] == DEFAULTS["limits"]["workers"]


def test_workers_are_at_least_one(tmp_path, monkeypatch):
    monkeypatch.setenv("CODEBROWSER_LIMITS_WORKERS", "0")
    assert load_runtime_config(str(tmp_path))["limits"]["workers"] == 1
