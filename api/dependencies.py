# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-02-03
# Description: dependencies.py
# -----------------------------------------------------------------------------
from functools import lru_cache

from api.AppContainer import AppContainer
from health.EmbeddingHealth import EmbeddingHealth
from services.QASearchService import QASearchService


@lru_cache
def get_container() -> AppContainer:
    # built on first use so importing the app does not need credentials
    return AppContainer()


def get_search_service() -> QASearchService:
    # use the singleton service from the container
    return get_container().search_service


def get_corpus_path() -> str:
    return get_container().corpus_path


def get_embedding_health() -> EmbeddingHealth:
    return get_container().embedding_health
