"""Tests for the notesync config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from notesync.config import ConfigError, NotesyncConfig, load_config, write_project_config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def _no_env_overrides(monkeypatch):
    monkeypatch.delenv("NOTESYNC_EMBEDDING_MODEL", raising=False)
    monkeypatch.delenv("NOTESYNC_TRANSCRIPTION_MODEL", raising=False)


# ---------------------------------------------------------------------------
# Defaults, no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    """No config files → all hardcoded defaults."""
    missing_global = tmp_path / "nonexistent" / "config.yaml"
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)

    assert cfg.embedding.model == "openai/text-embedding-3-small"
    assert cfg.embedding.dimensions == 1536
    assert cfg.chunkers.markdown.chunk_size == 250
    assert cfg.chunkers.attachment.chunk_size == 1000
    assert cfg.chunkers.attachment.overlap == pytest.approx(0.20)
    assert cfg.index.write_batch_size == 5
    assert cfg.index.rebuild_batch_size == 5
    assert cfg.index.max_sweep_ordinals == 10_000
    assert cfg.retrieval.top_k == 2
    assert cfg.storage.db == ".notesync.db"


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


def test_load_config_global_overrides_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {"model": "ollama/nomic-embed-text", "dimensions": 768}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.embedding.model == "ollama/nomic-embed-text"
    assert cfg.embedding.dimensions == 768
    # Other defaults unchanged
    assert cfg.retrieval.top_k == 2


def test_load_config_global_empty_file(tmp_path: Path) -> None:
    """Empty global config file → defaults (no crash)."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("# nothing here\n", encoding="utf-8")

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.embedding.model == "openai/text-embedding-3-small"


@pytest.mark.parametrize("key", ["api_key", "openai_api_key", "token", "password"])
def test_load_config_global_rejects_api_keys(tmp_path: Path, key: str) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {key: "sk-secret"}})

    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_load_config_chunk_size_is_not_a_secret(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"chunkers": {"markdown": {"chunk_size": 300}}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.chunkers.markdown.chunk_size == 300


# ---------------------------------------------------------------------------
# Per-project config
# ---------------------------------------------------------------------------


def test_load_config_project_overrides_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"retrieval": {"top_k": 8}})
    _write_yaml(tmp_path / "notesync.yaml", {"retrieval": {"top_k": 4}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.retrieval.top_k == 4


def test_load_config_partial_chunker_override_keeps_other_fields(tmp_path: Path) -> None:
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"chunkers": {"attachment": {"chunk_size": 500, "overlap": 0.1}}})
    _write_yaml(tmp_path / "notesync.yaml", {"chunkers": {"attachment": {"chunk_size": 800}}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.chunkers.attachment.chunk_size == 800
    assert cfg.chunkers.attachment.overlap == pytest.approx(0.1)  # global value preserved
    assert cfg.chunkers.markdown.chunk_size == 250


def test_load_config_index_section(tmp_path: Path) -> None:
    _write_yaml(
        tmp_path / "notesync.yaml",
        {"index": {"write_batch_size": 10, "max_sweep_ordinals": 500}},
    )
    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.index.write_batch_size == 10
    assert cfg.index.rebuild_batch_size == 5
    assert cfg.index.max_sweep_ordinals == 500


def test_load_config_unknown_key_warns(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "notesync.yaml", {"mystery": {"x": 1}})
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter("always")
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert any("mystery" in str(warning.message) for warning in w)


@pytest.mark.parametrize(
    "data",
    [
        {"index": {"write_batch_size": 0}},
        {"retrieval": {"top_k": 0}},
        {"embedding": {"dimensions": 0}},
        {"chunkers": {"markdown": {"overlap": 1.5}}},
    ],
)
def test_load_config_rejects_out_of_range(tmp_path: Path, data: dict) -> None:
    _write_yaml(tmp_path / "notesync.yaml", data)
    with pytest.raises(ConfigError):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")


# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------


def test_env_overrides_win(tmp_path: Path, monkeypatch) -> None:
    _write_yaml(tmp_path / "notesync.yaml", {"embedding": {"model": "openai/a"}})
    monkeypatch.setenv("NOTESYNC_EMBEDDING_MODEL", "openai/b")
    monkeypatch.setenv("NOTESYNC_TRANSCRIPTION_MODEL", "groq/whisper-large-v3")

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.embedding.model == "openai/b"
    assert cfg.loaders.transcription_model == "groq/whisper-large-v3"


# ---------------------------------------------------------------------------
# write_project_config
# ---------------------------------------------------------------------------


def test_write_project_config_roundtrip(tmp_path: Path) -> None:
    path = write_project_config(tmp_path)
    assert path.name == "notesync.yaml"
    assert "NEVER store API keys" in path.read_text(encoding="utf-8")

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.storage == NotesyncConfig().storage
    assert cfg.embedding.model == NotesyncConfig().embedding.model


def test_write_project_config_keeps_existing(tmp_path: Path) -> None:
    target = tmp_path / "notesync.yaml"
    target.write_text("retrieval:\n  top_k: 7\n", encoding="utf-8")
    write_project_config(tmp_path)
    assert target.read_text(encoding="utf-8") == "retrieval:\n  top_k: 7\n"
