# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: test_brew_service.py
# -----------------------------------------------------------------------------
import numpy as np
import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from conftest import FakeOpenAIClient
from eligibility.QATagFilter import QATagFilter
from embedding.QABatchScheduler import QABatchScheduler
from services.QABrewService import QABrewService, coalesce
from store.QACorpusStore import COLUMNS, QACorpusStore

TAGS = ["quantum-mechanics", "thermodynamics", "electromagnetism", "newtonian-mechanics", "optics"]


def _service(embedder, tags=TAGS) -> QABrewService:
    return QABrewService(
        store=QACorpusStore(),
        scheduler=QABatchScheduler(embedder, max_concurrency=4),
        tag_filter=QATagFilter.from_tags(tags),
    )


@pytest.fixture
def corpus(tmp_path, frame_factory):
    path = tmp_path / "corpus.parquet"
    QACorpusStore().write(
        frame_factory([
            (1, "Spin", "What is spin", "<quantum-mechanics>", None),
            (2, "Levels", "How to design levels", "<game-design>", None),
            (3, "Entropy", "Why does it grow", "<thermodynamics>", [1.0, 0.0]),
        ]),
        path,
    )
    return path


def test_brew_fills_only_eligible_absent_records(tmp_path, corpus, make_embedder):
    client = FakeOpenAIClient(lambda text: [0.0, 1.0])
    out = tmp_path / "brewed.parquet"

    summary = _service(make_embedder(client)).brew(corpus, out)

    frame = QACorpusStore().read(out)
    by_id = dict(zip(frame["id"], frame["embeddings"]))
    assert by_id[1].tolist() == [0.0, 1.0]
    assert by_id[2] is None
    assert by_id[3].tolist() == [1.0, 0.0]
    assert client.embeddings.calls == ["Title: Spin Body: What is spin"]
    assert summary.eligible == 1
    assert summary.embedded == 1
    assert summary.no_op is False


def test_second_brew_makes_no_calls_and_is_identical(tmp_path, corpus, make_embedder):
    first_out, second_out = tmp_path / "first.parquet", tmp_path / "second.parquet"
    _service(make_embedder(FakeOpenAIClient(lambda text: [0.0, 1.0]))).brew(corpus, first_out)

    client = FakeOpenAIClient(lambda text: [9.0, 9.0])
    summary = _service(make_embedder(client)).brew(first_out, second_out)

    assert client.embeddings.calls == []
    assert summary.no_op is True
    assert second_out.read_bytes() == first_out.read_bytes()


def test_no_op_in_place_leaves_file_alone(corpus, make_embedder):
    before = corpus.read_bytes()
    client = FakeOpenAIClient()

    summary = _service(make_embedder(client), tags=["optics"]).brew(corpus, corpus)

    assert summary.no_op is True
    assert client.embeddings.calls == []
    assert corpus.read_bytes() == before


def test_existing_embeddings_are_never_overwritten(tmp_path, frame_factory, make_embedder):
    path = tmp_path / "corpus.parquet"
    QACorpusStore().write(
        frame_factory([
            (1, "a", "b", "<optics>", [0.25, 0.75]),
            (2, "c", "d", "<optics>", None),
        ]),
        path,
    )
    client = FakeOpenAIClient(lambda text: [1.0, 1.0])

    _service(make_embedder(client)).brew(path, path)

    frame = QACorpusStore().read(path)
    assert frame["embeddings"].iat[0].tolist() == [0.25, 0.75]
    assert frame["embeddings"].iat[1].tolist() == [1.0, 1.0]
    assert client.embeddings.calls == ["Title: c Body: d"]


def test_over_limit_record_is_left_absent_without_calls(tmp_path, frame_factory, make_embedder):
    path = tmp_path / "corpus.parquet"
    long_body = " ".join(["word"] * 9000)
    QACorpusStore().write(
        frame_factory([
            (1, "Long", long_body, "<optics>", None),
            (2, "Short", "fine", "<optics>", None),
        ]),
        path,
    )
    client = FakeOpenAIClient(lambda text: [1.0, 0.0])

    summary = _service(make_embedder(client)).brew(path, path)

    frame = QACorpusStore().read(path)
    assert frame["embeddings"].iat[0] is None
    assert frame["embeddings"].iat[1] is not None
    assert client.embeddings.calls == ["Title: Short Body: fine"]
    assert summary.skipped == 1


def test_failed_record_stays_absent_and_is_retried_next_run(tmp_path, frame_factory, make_embedder):
    path = tmp_path / "corpus.parquet"
    QACorpusStore().write(
        frame_factory([
            (1, "flaky", "q", "<optics>", None),
            (2, "steady", "q", "<optics>", None),
        ]),
        path,
    )
    failing = FakeOpenAIClient(
        lambda text: [1.0, 0.0],
        error_fn=lambda text, n: RuntimeError("400 bad request") if "flaky" in text else None,
    )

    first = _service(make_embedder(failing)).brew(path, path)
    assert first.embedded == 1
    assert first.skipped == 1
    assert QACorpusStore().read(path)["embeddings"].iat[0] is None

    healthy = FakeOpenAIClient(lambda text: [0.0, 1.0])
    second = _service(make_embedder(healthy)).brew(path, path)

    frame = QACorpusStore().read(path)
    assert healthy.embeddings.calls == ["Title: flaky Body: q"]
    assert second.embedded == 1
    assert frame["embeddings"].iat[0].tolist() == [0.0, 1.0]
    assert frame["embeddings"].iat[1].tolist() == [1.0, 0.0]


def test_output_has_exactly_the_corpus_columns(tmp_path, make_embedder):
    path = tmp_path / "corpus.parquet"
    pq.write_table(
        pa.table({
            "id": pa.array([1], type=pa.uint32()),
            "title": ["a"],
            "body": ["b"],
            "tags": ["<optics>"],
            "embeddings": pa.array([None], type=pa.list_(pa.float32())),
            "Score": [12],
        }),
        path,
    )
    out = tmp_path / "out.parquet"

    _service(make_embedder(FakeOpenAIClient())).brew(path, out)

    assert pq.read_schema(out).names == COLUMNS


def test_fresh_vectors_of_another_dimension_are_dropped(tmp_path, frame_factory, make_embedder):
    path = tmp_path / "corpus.parquet"
    QACorpusStore().write(
        frame_factory([
            (1, "a", "b", "<optics>", [1.0, 0.0]),
            (2, "c", "d", "<optics>", None),
        ]),
        path,
    )
    client = FakeOpenAIClient(lambda text: [1.0, 0.0, 0.0])

    summary = _service(make_embedder(client)).brew(path, path)

    assert summary.dropped_dimension == 1
    assert summary.embedded == 0
    assert QACorpusStore().read(path)["embeddings"].iat[1] is None


def test_coalesce_prefers_existing():
    old = np.array([1.0], dtype=np.float32)
    new = np.array([2.0], dtype=np.float32)

    merged = coalesce([old, None, None, float("nan")], [new, new, None, new])

    assert merged[0] is old
    assert merged[1] is new
    assert merged[2] is None
    assert merged[3] is new


def test_coalesce_length_mismatch():
    with pytest.raises(ValueError):
        coalesce([None], [None, None])


def test_no_op_brew_never_builds_a_scheduler(tmp_path, corpus):
    def _factory():
        raise AssertionError("scheduler must not be built for a no-op brew")

    service = QABrewService(
        store=QACorpusStore(),
        tag_filter=QATagFilter.from_tags(["optics"]),
        scheduler_factory=_factory,
    )

    summary = service.brew(corpus, tmp_path / "out.parquet")

    assert summary.no_op is True


def test_factory_scheduler_is_built_once_and_closed(tmp_path, corpus, make_embedder):
    client = FakeOpenAIClient(lambda text: [0.0, 1.0])
    built = []

    def _factory():
        built.append(1)
        return QABatchScheduler(make_embedder(client), max_concurrency=2)

    service = QABrewService(
        store=QACorpusStore(),
        tag_filter=QATagFilter.from_tags(TAGS),
        scheduler_factory=_factory,
    )

    summary = service.brew(corpus, tmp_path / "out.parquet")

    assert built == [1]
    assert summary.embedded == 1
    assert client.closed is True


def test_exactly_one_scheduler_source_required(make_embedder):
    with pytest.raises(ValueError):
        QABrewService(store=QACorpusStore(), tag_filter=QATagFilter.from_tags(TAGS))
    with pytest.raises(ValueError):
        QABrewService(
            store=QACorpusStore(),
            tag_filter=QATagFilter.from_tags(TAGS),
            scheduler=QABatchScheduler(make_embedder(FakeOpenAIClient())),
            scheduler_factory=lambda: None,
        )
