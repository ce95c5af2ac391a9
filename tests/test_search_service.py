# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: test_search_service.py
# -----------------------------------------------------------------------------
import asyncio

import pytest

from conftest import FakeOpenAIClient
from services.QASearchService import QASearchService, SearchHit, rank
from store.QACorpusStore import QACorpusStore
from utility.display import format_hits, hits_to_frame
from utility.errors import QueryEmbeddingError

PREFIX = "https://physics.stackexchange.com/questions/"


def _search(make_embedder, client, path, text="entropy", **kw):
    service = QASearchService(store=QACorpusStore(), embedder=make_embedder(client))
    return asyncio.run(service.search(path, text, **kw))


def test_single_record_scores_one(tmp_path, frame_factory, make_embedder):
    path = tmp_path / "corpus.parquet"
    QACorpusStore().write(frame_factory([(3, "Entropy", "b", "<thermodynamics>", [1.0, 0.0])]), path)
    client = FakeOpenAIClient(lambda text: [1.0, 0.0])

    hits = _search(make_embedder, client, path)

    assert len(hits) == 1
    assert hits[0].id == 3
    assert hits[0].score == pytest.approx(1.0)
    assert hits[0].url == f"{PREFIX}3"
    assert client.embeddings.calls == ["entropy"]


def test_ranking_descending_with_ascending_id_tie_break(frame_factory):
    frame = frame_factory([
        (9, "low", "b", "<x>", [0.1, 0.0]),
        (5, "tie-b", "b", "<x>", [0.5, 0.0]),
        (2, "tie-a", "b", "<x>", [0.5, 0.0]),
        (7, "high", "b", "<x>", [0.9, 0.0]),
        (4, "none", "b", "<x>", None),
    ])

    hits = rank(frame, [1.0, 0.0], top_k=20, url_prefix=PREFIX)

    assert [h.id for h in hits] == [7, 2, 5, 9]
    assert all(h.id != 4 for h in hits)


def test_top_k_truncates(frame_factory):
    frame = frame_factory([(i, f"t{i}", "b", "<x>", [float(i), 0.0]) for i in range(1, 11)])

    hits = rank(frame, [1.0, 0.0], top_k=3, url_prefix=PREFIX)

    assert [h.id for h in hits] == [10, 9, 8]


def test_fewer_embedded_than_top_k(frame_factory):
    frame = frame_factory([(1, "t", "b", "<x>", [1.0]), (2, "u", "b", "<x>", None)])
    assert len(rank(frame, [1.0], top_k=20, url_prefix=PREFIX)) == 1


def test_unembedded_corpus_gives_no_results(frame_factory):
    frame = frame_factory([(1, "t", "b", "<x>", None)])
    assert rank(frame, [1.0, 0.0], top_k=5, url_prefix=PREFIX) == []


def test_query_dimension_mismatch(frame_factory):
    frame = frame_factory([(1, "t", "b", "<x>", [1.0, 0.0])])
    with pytest.raises(ValueError):
        rank(frame, [1.0, 0.0, 0.0], top_k=5, url_prefix=PREFIX)


def test_top_k_must_be_positive(frame_factory):
    frame = frame_factory([(1, "t", "b", "<x>", [1.0, 0.0])])
    with pytest.raises(ValueError):
        rank(frame, [1.0, 0.0], top_k=0, url_prefix=PREFIX)


def test_explicit_zero_top_k_is_rejected(tmp_path, frame_factory, make_embedder):
    path = tmp_path / "corpus.parquet"
    QACorpusStore().write(frame_factory([(1, "t", "b", "<x>", [1.0, 0.0])]), path)

    with pytest.raises(ValueError):
        _search(make_embedder, FakeOpenAIClient(), path, top_k=0)


def test_default_top_k_applies_when_unset(tmp_path, frame_factory, make_embedder):
    path = tmp_path / "corpus.parquet"
    QACorpusStore().write(
        frame_factory([(i, f"t{i}", "b", "<x>", [float(i), 0.0]) for i in range(1, 6)]),
        path,
    )
    service = QASearchService(store=QACorpusStore(), embedder=make_embedder(FakeOpenAIClient()), default_top_k=2)

    hits = asyncio.run(service.search(path, "entropy"))

    assert [h.id for h in hits] == [5, 4]


def test_query_embedding_failure_propagates(tmp_path, frame_factory, make_embedder):
    path = tmp_path / "corpus.parquet"
    QACorpusStore().write(frame_factory([(1, "t", "b", "<x>", [1.0, 0.0])]), path)
    client = FakeOpenAIClient(error_fn=lambda text, n: RuntimeError("provider down"))

    with pytest.raises(QueryEmbeddingError):
        _search(make_embedder, client, path)


def test_empty_query_is_rejected_before_embedding(tmp_path, make_embedder):
    client = FakeOpenAIClient()
    with pytest.raises(ValueError):
        _search(make_embedder, client, tmp_path / "unused.parquet", text="   ")
    assert client.embeddings.calls == []


def test_missing_corpus(tmp_path, make_embedder):
    with pytest.raises(FileNotFoundError):
        _search(make_embedder, FakeOpenAIClient(), tmp_path / "missing.parquet")


def test_hits_to_frame_columns():
    frame = hits_to_frame([SearchHit(id=1, url=f"{PREFIX}1", title="t", score=0.5)])
    assert list(frame.columns) == ["id", "title", "score"]
    assert frame["id"].iat[0] == f"{PREFIX}1"


def test_format_hits_truncates_title_not_url():
    hit = SearchHit(id=123456, url=f"{PREFIX}123456", title="x" * 80, score=0.987654321)

    text = format_hits([hit], str_len=10)

    assert f"{PREFIX}123456" in text
    assert "xxxxxxx..." in text
    assert "x" * 11 not in text
    assert "0.987654" in text


def test_format_hits_limits_rows():
    hits = [SearchHit(id=i, url=f"{PREFIX}{i}", title=f"title {i}", score=1.0 / i) for i in range(1, 30)]

    text = format_hits(hits, max_rows=5)

    assert "title 5" in text
    assert "title 6" not in text


def test_format_hits_empty():
    assert format_hits([]) == "No results (corpus has no embedded records)"
