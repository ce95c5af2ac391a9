# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: TokenGuard
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Any, Protocol

import tiktoken

from utility.logging_utils import get_class_logger


class TokenEncoder(Protocol):
    def encode_ordinary(self, text: str) -> list[int]:
        ...


@dataclass
class TokenGuard:
    """
    Input-size check in front of the embedding model.

    The encoder is built once and only read afterwards, so one guard is shared
    by every concurrent embedding call.
    """
    encoder: TokenEncoder
    max_tokens: int = 8100
    logger: Any = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)
        if self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive, got {self.max_tokens}")

    @classmethod
    def for_model(cls, model: str, *, fallback_encoding: str = "cl100k_base", max_tokens: int = 8100) -> "TokenGuard":
        """
        Prefer the model's own encoding; unknown model names (e.g. Azure
        deployment names) fall back to the configured encoding.
        """
        try:
            encoder = tiktoken.encoding_for_model(model)
        except KeyError:
            encoder = tiktoken.get_encoding(fallback_encoding)
        return cls(encoder=encoder, max_tokens=max_tokens)

    def count(self, text: str) -> int:
        return len(self.encoder.encode_ordinary(text))

    def allows(self, text: str) -> bool:
        return self.count(text) <= self.max_tokens
