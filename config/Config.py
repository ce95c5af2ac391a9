# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-08
# Updated: 2026-02-03
# Description: Config
# -----------------------------------------------------------------------------

import os
from dataclasses import dataclass, field
from typing import Tuple

from dotenv import load_dotenv, find_dotenv

# Load .env once globally (before settings reads its defaults)
load_dotenv(find_dotenv(usecwd=True))

import settings  # noqa: E402


@dataclass(frozen=True)
class Config:
    # OpenAI (direct)
    openai_api_key: str = ""
    openai_base_url: str = ""

    # Azure OpenAI (used instead of OpenAI direct when the endpoint is set)
    azure_openai_api_key: str = ""
    azure_openai_endpoint: str = ""
    azure_openai_embed_deployment: str = ""
    azure_openai_api_version: str = "2024-10-21"

    # Embedding model + token guard
    embed_model: str = settings.EMBED_MODEL
    embed_dimensions: int = settings.EMBED_DIMENSIONS
    tokenizer_encoding: str = settings.TOKENIZER_ENCODING
    max_tokens: int = settings.MAX_TOKENS

    # Brew
    max_concurrency: int = settings.MAX_CONCURRENCY
    embed_timeout_s: float = settings.EMBED_TIMEOUT_S
    embed_max_retries: int = settings.EMBED_MAX_RETRIES
    embed_retry_base_delay_s: float = settings.EMBED_RETRY_BASE_DELAY_S
    eligible_tags: Tuple[str, ...] = field(default_factory=lambda: tuple(settings.ELIGIBLE_TAGS))

    # Search + display
    search_top_k: int = settings.SEARCH_TOP_K
    question_url_prefix: str = settings.QUESTION_URL_PREFIX
    display_max_rows: int = settings.DISPLAY_MAX_ROWS
    display_str_len: int = settings.DISPLAY_STR_LEN
    corpus_path: str = settings.CORPUS_PATH

    # ---- Single source of truth: credential field_name -> ENV VAR NAME ----
    ENV_VARS = {
        # OpenAI direct
        "openai_api_key": "OPENAI_API_KEY",
        "openai_base_url": "OPENAI_BASE_URL",      # e.g. https://api.openai.com/v1

        # Azure OpenAI
        "azure_openai_api_key": "AZURE_OPENAI_API_KEY",
        "azure_openai_endpoint": "AZURE_OPENAI_ENDPOINT",
        "azure_openai_embed_deployment": "AZURE_OPENAI_EMBED_DEPLOYMENT",
    }

    # Credential sets that select a backend; the integration tests skip without one
    OPENAI_DIRECT_ENV_VARS = (
        "OPENAI_API_KEY",
    )

    AZURE_OPENAI_ENV_VARS = (
        "AZURE_OPENAI_API_KEY",
        "AZURE_OPENAI_ENDPOINT",
        "AZURE_OPENAI_EMBED_DEPLOYMENT",
    )

    @staticmethod
    def from_env() -> "Config":
        """Build Config object from environment variables (tuning comes from settings)."""
        kwargs = {
            field_name: os.getenv(env_name, "").strip()
            for field_name, env_name in Config.ENV_VARS.items()
        }
        return Config(**kwargs)

    @property
    def uses_azure(self) -> bool:
        return bool(self.azure_openai_endpoint)

    @property
    def model_name(self) -> str:
        """Model (or Azure deployment) name sent with every embedding request."""
        if self.uses_azure:
            return self.azure_openai_embed_deployment or self.embed_model
        return self.embed_model

    def __post_init__(self):
        """
        Fail fast on missing credentials or nonsensical tuning values.
        One provider backend must be fully configured.
        """
        if self.uses_azure:
            required = ("azure_openai_api_key", "azure_openai_endpoint", "azure_openai_embed_deployment")
        else:
            required = ("openai_api_key",)

        missing_fields = [k for k in required if not getattr(self, k)]
        if missing_fields:
            missing_env_vars = [self.ENV_VARS[f] for f in missing_fields]
            raise ValueError(f"Missing required environment variables: {missing_env_vars}")

        if self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive, got {self.max_tokens}")
        if self.max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be positive, got {self.max_concurrency}")
        if self.embed_max_retries < 0:
            raise ValueError(f"embed_max_retries must be >= 0, got {self.embed_max_retries}")
        if self.embed_timeout_s <= 0:
            raise ValueError(f"embed_timeout_s must be positive, got {self.embed_timeout_s}")
        if self.search_top_k <= 0:
            raise ValueError(f"search_top_k must be positive, got {self.search_top_k}")
        if not self.eligible_tags:
            raise ValueError("eligible_tags must not be empty")

    def summary(self) -> dict:
        """Return a safe, non-sensitive summary for logging."""
        return {
            "backend": "azure" if self.uses_azure else "openai",
            "openai_base_url": self.openai_base_url or None,
            "azure_openai_endpoint": self.azure_openai_endpoint or None,
            "model": self.model_name,
            "embed_dimensions": self.embed_dimensions or None,
            "max_tokens": self.max_tokens,
            "max_concurrency": self.max_concurrency,
            "embed_timeout_s": self.embed_timeout_s,
            "embed_max_retries": self.embed_max_retries,
            "eligible_tags": list(self.eligible_tags),
            "search_top_k": self.search_top_k,
            "corpus_path": self.corpus_path,
        }
