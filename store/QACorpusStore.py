# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-03
# Description: QACorpusStore
# -----------------------------------------------------------------------------
import os
import shutil
import uuid
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from document.QARecord import QARecord
from utility.errors import CorpusSchemaError
from utility.logging_utils import get_class_logger

COLUMNS = ["id", "title", "body", "tags", "embeddings"]
TEXT_COLUMNS = ("title", "body", "tags")
U32_MAX = 2 ** 32 - 1

SCHEMA = pa.schema([
    pa.field("id", pa.uint32(), nullable=False),
    pa.field("title", pa.string(), nullable=False),
    pa.field("body", pa.string(), nullable=False),
    pa.field("tags", pa.string(), nullable=False),
    pa.field("embeddings", pa.list_(pa.float32()), nullable=True),
])


def is_absent(value: Any) -> bool:
    """None, or the NaN pandas substitutes for missing objects."""
    if value is None:
        return True
    return isinstance(value, float) and np.isnan(value)


def object_column(values: Sequence[Any]) -> np.ndarray:
    # element-wise fill keeps equal-length vectors from collapsing into a 2-D array
    out = np.empty(len(values), dtype=object)
    for i, v in enumerate(values):
        out[i] = None if is_absent(v) else v
    return out


def embedding_dimension(vectors: Iterable[Any]) -> Optional[int]:
    """Dimension of the first present vector, or None for an unembedded corpus."""
    for v in vectors:
        if not is_absent(v):
            return int(len(v))
    return None


class QACorpusStore:
    """
    Parquet-backed corpus of question records.

    The corpus is read wholesale into a pandas DataFrame with the columns
    id, title, body, tags, embeddings (None or 1-D float32 ndarray) and
    written back wholesale with zstd compression via temp file + os.replace.
    There is no locking: two brew runs against the same file are not safe.
    """

    def __init__(self, *, compression: str = "zstd", logger=None):
        self.compression = compression
        self.logger = logger or get_class_logger(self.__class__)

    # -------------------------------------------------------------------------
    def read(self, path: str | Path) -> pd.DataFrame:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Corpus file not found: {path}")

        try:
            table = pq.read_table(path)
        except (pa.ArrowException, OSError) as e:
            raise CorpusSchemaError(f"Cannot read corpus file '{path}': {e}") from e

        frame = self._table_to_frame(table, source=str(path))
        self.logger.info(
            "Read corpus '%s': %d records, %d embedded",
            path,
            len(frame),
            sum(1 for v in frame["embeddings"] if not is_absent(v)),
        )
        return frame

    def write(self, frame: pd.DataFrame, path: str | Path) -> None:
        path = Path(path)
        table = self.to_table(frame)

        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            pq.write_table(table, tmp_path, compression=self.compression)
            os.replace(tmp_path, path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

        self.logger.info("Wrote corpus '%s' (%d records)", path, table.num_rows)

    def copy(self, src: str | Path, dst: str | Path) -> None:
        """Byte-for-byte copy, same atomic replace as write()."""
        src, dst = Path(src), Path(dst)
        if src.resolve() == dst.resolve():
            return
        dst.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = dst.with_name(f".{dst.name}.{uuid.uuid4().hex}.tmp")
        try:
            shutil.copyfile(src, tmp_path)
            os.replace(tmp_path, dst)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
        self.logger.info("Copied unchanged corpus '%s' -> '%s'", src, dst)

    # -------------------------------------------------------------------------
    @staticmethod
    def from_records(records: Iterable[QARecord]) -> pd.DataFrame:
        rows: List[QARecord] = list(records)
        return pd.DataFrame({
            "id": pd.Series([r.id for r in rows], dtype="int64"),
            "title": pd.Series([r.title for r in rows], dtype=object),
            "body": pd.Series([r.body for r in rows], dtype=object),
            "tags": pd.Series([r.tags for r in rows], dtype=object),
            "embeddings": pd.Series(object_column([r.embedding for r in rows]), dtype=object),
        })

    def to_table(self, frame: pd.DataFrame) -> pa.Table:
        missing = [c for c in COLUMNS if c not in frame.columns]
        if missing:
            raise CorpusSchemaError(f"Corpus frame is missing columns: {missing}")

        ids = frame["id"].to_numpy()
        if len(ids) and (ids.min() < 0 or ids.max() > U32_MAX):
            raise CorpusSchemaError("Record ids must fit in an unsigned 32-bit integer")

        for col in TEXT_COLUMNS:
            if frame[col].isna().any():
                raise CorpusSchemaError(f"Column '{col}' must not contain nulls")

        vectors = _validate_vectors(frame["embeddings"].tolist(), frame["id"].tolist())
        embeddings = pa.array(
            [None if v is None else v.tolist() for v in vectors],
            type=pa.list_(pa.float32()),
        )

        return pa.Table.from_arrays(
            [
                pa.array(ids.astype(np.uint32), type=pa.uint32()),
                pa.array(frame["title"].tolist(), type=pa.string()),
                pa.array(frame["body"].tolist(), type=pa.string()),
                pa.array(frame["tags"].tolist(), type=pa.string()),
                embeddings,
            ],
            schema=SCHEMA,
        )

    # -------------------------------------------------------------------------
    @staticmethod
    def _table_to_frame(table: pa.Table, *, source: str) -> pd.DataFrame:
        missing = [c for c in COLUMNS if c not in table.column_names]
        if missing:
            raise CorpusSchemaError(f"Corpus '{source}' is missing columns: {missing}")

        id_type = table.schema.field("id").type
        if not pa.types.is_integer(id_type):
            raise CorpusSchemaError(f"Column 'id' must be an integer column, got {id_type}")

        for col in TEXT_COLUMNS:
            col_type = table.schema.field(col).type
            if not (pa.types.is_string(col_type) or pa.types.is_large_string(col_type)):
                raise CorpusSchemaError(f"Column '{col}' must be a string column, got {col_type}")

        emb_type = table.schema.field("embeddings").type
        if pa.types.is_list(emb_type) or pa.types.is_large_list(emb_type):
            if not pa.types.is_floating(emb_type.value_type):
                raise CorpusSchemaError(f"Column 'embeddings' must hold float lists, got {emb_type}")
        elif not pa.types.is_null(emb_type):
            raise CorpusSchemaError(f"Column 'embeddings' must be a list column, got {emb_type}")

        for col in ("id",) + TEXT_COLUMNS:
            if table.column(col).null_count:
                raise CorpusSchemaError(f"Column '{col}' contains {table.column(col).null_count} nulls")

        ids = np.asarray(table.column("id").to_numpy(), dtype=np.int64)
        if len(ids) and (ids.min() < 0 or ids.max() > U32_MAX):
            raise CorpusSchemaError("Record ids must fit in an unsigned 32-bit integer")

        raw_vectors = table.column("embeddings").to_pylist()
        vectors = _validate_vectors(raw_vectors, ids.tolist())

        return pd.DataFrame({
            "id": pd.Series(ids, dtype="int64"),
            "title": pd.Series(table.column("title").to_pylist(), dtype=object),
            "body": pd.Series(table.column("body").to_pylist(), dtype=object),
            "tags": pd.Series(table.column("tags").to_pylist(), dtype=object),
            "embeddings": pd.Series(object_column(vectors), dtype=object),
        })


def _validate_vectors(values: Sequence[Any], ids: Sequence[Any]) -> List[Optional[np.ndarray]]:
    """
    Every present vector must be a non-empty, finite, 1-D float vector and all
    of them must share one dimension.
    """
    out: List[Optional[np.ndarray]] = []
    dim: Optional[int] = None

    for record_id, value in zip(ids, values):
        if is_absent(value):
            out.append(None)
            continue
        try:
            vec = np.asarray(value, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise CorpusSchemaError(f"Record {record_id}: malformed embedding ({e})") from e

        if vec.ndim != 1 or vec.size == 0:
            raise CorpusSchemaError(f"Record {record_id}: embedding must be a non-empty 1-D vector")
        if not np.isfinite(vec).all():
            raise CorpusSchemaError(f"Record {record_id}: embedding contains non-finite values")
        if dim is None:
            dim = vec.size
        elif vec.size != dim:
            raise CorpusSchemaError(
                f"Record {record_id}: embedding dimension {vec.size} != corpus dimension {dim}"
            )
        out.append(vec)

    return out
