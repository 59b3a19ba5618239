"""notesync configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (NOTESYNC_EMBEDDING_MODEL, NOTESYNC_TRANSCRIPTION_MODEL)
  3. Per-project notesync.yaml
  4. Global ~/.notesync/config.yaml  (model defaults only — no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".notesync"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "notesync.yaml"

# Key names that look like credentials. Does not match chunk_size, max_tokens etc.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["storage", "embedding", "chunkers", "index", "retrieval", "loaders"]
)


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class StorageCfg:
    """Where the note database, vector index, and attachment files live."""

    db: str = ".notesync.db"
    index: str = ".notesync/index.db"
    attachments_dir: str = "attachments"


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (notesync.yaml: embedding:)."""

    model: str = "openai/text-embedding-3-small"
    dimensions: int = 1536
    num_retries: int = 3


@dataclass
class ChunkerCfg:
    """Chunk size (in approximate tokens) and fractional overlap."""

    chunk_size: int = 250
    overlap: float = 0.20


@dataclass
class ChunkersCfg:
    """Per-strategy chunker configuration (notesync.yaml: chunkers:).

    ``markdown`` applies to note bodies, ``attachment`` to text extracted from
    attached files.
    """

    markdown: ChunkerCfg = field(default_factory=ChunkerCfg)
    attachment: ChunkerCfg = field(
        default_factory=lambda: ChunkerCfg(chunk_size=1000, overlap=0.20)
    )


@dataclass
class IndexCfg:
    """Write batching and sweep limits (notesync.yaml: index:)."""

    write_batch_size: int = 5
    rebuild_batch_size: int = 5
    max_sweep_ordinals: int = 10_000


@dataclass
class RetrievalCfg:
    top_k: int = 2


@dataclass
class LoadersCfg:
    transcription_model: str = "openai/whisper-1"
    max_audio_mb: float = 25.0


@dataclass
class NotesyncConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    storage: StorageCfg = field(default_factory=StorageCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    chunkers: ChunkersCfg = field(default_factory=ChunkersCfg)
    index: IndexCfg = field(default_factory=IndexCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    loaders: LoadersCfg = field(default_factory=LoadersCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: NotesyncConfig) -> None:
    """Reject values the engine cannot work with."""
    for name in ("write_batch_size", "rebuild_batch_size", "max_sweep_ordinals"):
        if getattr(cfg.index, name) < 1:
            raise ConfigError(f"index.{name} must be >= 1, got {getattr(cfg.index, name)}")
    if cfg.embedding.dimensions < 1:
        raise ConfigError(
            f"embedding.dimensions must be >= 1, got {cfg.embedding.dimensions}"
        )
    if cfg.retrieval.top_k < 1:
        raise ConfigError(f"retrieval.top_k must be >= 1, got {cfg.retrieval.top_k}")
    for name in ("markdown", "attachment"):
        ch: ChunkerCfg = getattr(cfg.chunkers, name)
        if ch.chunk_size < 1 or not 0.0 <= ch.overlap < 1.0:
            raise ConfigError(
                f"chunkers.{name}: chunk_size must be >= 1 and overlap in [0.0, 1.0)"
            )


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _parse_chunker(raw: dict[str, Any], defaults: ChunkerCfg) -> ChunkerCfg:
    return ChunkerCfg(
        chunk_size=int(raw.get("chunk_size", defaults.chunk_size)),
        overlap=float(raw.get("overlap", defaults.overlap)),
    )


def _cfg_from_dict(data: dict[str, Any]) -> NotesyncConfig:
    """Build a *NotesyncConfig* from a merged raw YAML dict."""
    cfg = NotesyncConfig()

    if "storage" in data:
        s = data["storage"] or {}
        cfg.storage = StorageCfg(
            db=str(s.get("db", cfg.storage.db)),
            index=str(s.get("index", cfg.storage.index)),
            attachments_dir=str(s.get("attachments_dir", cfg.storage.attachments_dir)),
        )

    if "embedding" in data:
        e = data["embedding"] or {}
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            dimensions=int(e.get("dimensions", cfg.embedding.dimensions)),
            num_retries=int(e.get("num_retries", cfg.embedding.num_retries)),
        )

    if "chunkers" in data:
        ch = data["chunkers"] or {}
        cfg.chunkers = ChunkersCfg(
            markdown=_parse_chunker(ch.get("markdown", {}), cfg.chunkers.markdown),
            attachment=_parse_chunker(ch.get("attachment", {}), cfg.chunkers.attachment),
        )

    if "index" in data:
        i = data["index"] or {}
        cfg.index = IndexCfg(
            write_batch_size=int(i.get("write_batch_size", cfg.index.write_batch_size)),
            rebuild_batch_size=int(
                i.get("rebuild_batch_size", cfg.index.rebuild_batch_size)
            ),
            max_sweep_ordinals=int(
                i.get("max_sweep_ordinals", cfg.index.max_sweep_ordinals)
            ),
        )

    if "retrieval" in data:
        r = data["retrieval"] or {}
        cfg.retrieval = RetrievalCfg(top_k=int(r.get("top_k", cfg.retrieval.top_k)))

    if "loaders" in data:
        lo = data["loaders"] or {}
        cfg.loaders = LoadersCfg(
            transcription_model=str(
                lo.get("transcription_model", cfg.loaders.transcription_model)
            ),
            max_audio_mb=float(lo.get("max_audio_mb", cfg.loaders.max_audio_mb)),
        )

    return cfg


def _apply_env_overrides(cfg: NotesyncConfig) -> NotesyncConfig:
    if model := os.environ.get("NOTESYNC_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if model := os.environ.get("NOTESYNC_TRANSCRIPTION_MODEL"):
        cfg.loaders.transcription_model = model
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> NotesyncConfig:
    """Load and return a merged *NotesyncConfig*.

    Applies layers in order: global → per-project → env vars.

    Args:
        project_dir: Directory to search for *notesync.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, or a value
            is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg


def write_project_config(project_dir: Path, cfg: NotesyncConfig | None = None) -> Path:
    """Write a starter *notesync.yaml* into *project_dir* unless one exists."""
    cfg = cfg or NotesyncConfig()
    target = project_dir / _PROJECT_CONFIG_NAME
    if target.exists():
        return target

    data = {
        "storage": {
            "db": cfg.storage.db,
            "index": cfg.storage.index,
            "attachments_dir": cfg.storage.attachments_dir,
        },
        "embedding": {
            "model": cfg.embedding.model,
            "dimensions": cfg.embedding.dimensions,
        },
        "retrieval": {"top_k": cfg.retrieval.top_k},
    }
    header = (
        "# notesync project configuration.\n"
        "# NEVER store API keys here — use environment variables:\n"
        "#   export OPENAI_API_KEY=sk-...\n\n"
    )
    target.write_text(header + yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return target
