# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-09
# Updated: 2026-02-03
# Description: settings.py
# -----------------------------------------------------------------------------
import os
from typing import List


def _env(name: str, default: str = "") -> str:
    """Read env var safely and strip whitespace."""
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return int(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be an int, got {v!r}") from e


def _env_float(name: str, default: float) -> float:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return float(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be a float, got {v!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    v = _env(name, "")
    if v == "":
        return default
    v = v.lower()
    if v in ("1", "true", "t", "yes", "y", "on"):
        return True
    if v in ("0", "false", "f", "no", "n", "off"):
        return False
    raise RuntimeError(f"Env var {name} must be a boolean, got {v!r}")


def _env_list(name: str, default: List[str]) -> List[str]:
    """Comma separated list; blank entries are dropped."""
    v = _env(name, "")
    if v == "":
        return list(default)
    return [item.strip() for item in v.split(",") if item.strip()]


# -----------------------------------------------------------------------------
# Embedding model
# -----------------------------------------------------------------------------
EMBED_MODEL = _env("QABREW_EMBED_MODEL", "text-embedding-3-large")

# 0 means "accept whatever the model returns"
EMBED_DIMENSIONS = _env_int("QABREW_EMBED_DIMENSIONS", 0)

# Fallback when tiktoken does not know the model name
TOKENIZER_ENCODING = _env("QABREW_TOKENIZER_ENCODING", "cl100k_base")

# Inputs above this many tokens are never sent to the provider
MAX_TOKENS = _env_int("QABREW_MAX_TOKENS", 8100)


# -----------------------------------------------------------------------------
# Brew (enrichment) tuning
# -----------------------------------------------------------------------------
MAX_CONCURRENCY = _env_int("QABREW_MAX_CONCURRENCY", 256)
EMBED_TIMEOUT_S = _env_float("QABREW_EMBED_TIMEOUT_S", 60.0)
EMBED_MAX_RETRIES = _env_int("QABREW_EMBED_MAX_RETRIES", 2)
EMBED_RETRY_BASE_DELAY_S = _env_float("QABREW_EMBED_RETRY_BASE_DELAY_S", 0.8)

DEFAULT_ELIGIBLE_TAGS = [
    "quantum-mechanics",
    "statistical-mechanics",
    "thermodynamics",
    "electromagnetism",
    "electrodynamics",
]
ELIGIBLE_TAGS = _env_list("QABREW_ELIGIBLE_TAGS", DEFAULT_ELIGIBLE_TAGS)


# -----------------------------------------------------------------------------
# Search + display
# -----------------------------------------------------------------------------
SEARCH_TOP_K = _env_int("QABREW_SEARCH_TOP_K", 20)
QUESTION_URL_PREFIX = _env("QABREW_QUESTION_URL_PREFIX", "https://physics.stackexchange.com/questions/")
DISPLAY_MAX_ROWS = _env_int("QABREW_DISPLAY_MAX_ROWS", 20)
DISPLAY_STR_LEN = _env_int("QABREW_DISPLAY_STR_LEN", 50)

# Corpus served by the HTTP API
CORPUS_PATH = _env("QABREW_CORPUS_PATH", "./data/corpus.parquet")
API_HOST = _env("QABREW_API_HOST", "127.0.0.1")
API_PORT = _env_int("QABREW_API_PORT", 8000)

# parse-xml: carry embeddings over from an existing output file by id
EXTRACT_KEEP_EMBEDDINGS = _env_bool("QABREW_EXTRACT_KEEP_EMBEDDINGS", False)


# -----------------------------------------------------------------------------
# Sanity checks (tunable)
# -----------------------------------------------------------------------------
if MAX_TOKENS <= 0:
    raise RuntimeError("QABREW_MAX_TOKENS must be positive")

if MAX_CONCURRENCY <= 0:
    raise RuntimeError("QABREW_MAX_CONCURRENCY must be positive")

if not ELIGIBLE_TAGS:
    raise RuntimeError("ELIGIBLE_TAGS resolved to an empty list")
