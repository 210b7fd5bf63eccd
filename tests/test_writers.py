import gzip
import io
import json
from pathlib import Path

import pytest

from batchflow.core.config import JobParameters
from batchflow.core.job import BatchJob
from batchflow.core.records import Batch, make_record
from batchflow.core.report import JobStatus
from batchflow.sinks.sinks import (
    CollectingRecordWriter,
    GzipJsonlRecordWriter,
    JsonlRecordWriter,
    StandardOutputRecordWriter,
)
from batchflow.sources.iterable import IterableRecordReader


def _batch(*payloads):
    batch = Batch()
    for n, payload in enumerate(payloads, start=1):
        batch.add(make_record(n, payload))
    return batch


def test_jsonl_writer_replaces_target_on_close(tmp_path: Path):
    path = tmp_path / "out" / "data.jsonl"
    writer = JsonlRecordWriter(path)
    writer.open()
    writer.write_records(_batch({"a": 1}, {"a": 2}))

    assert not path.exists()
    writer.close()

    lines = path.read_text("utf-8").splitlines()
    assert [json.loads(line) for line in lines] == [{"a": 1}, {"a": 2}]
    assert not (tmp_path / "out" / "data.jsonl.tmp").exists()


def test_jsonl_writer_requires_open(tmp_path: Path):
    with pytest.raises(RuntimeError):
        JsonlRecordWriter(tmp_path / "x.jsonl").write_records(_batch(1))


def test_gzip_jsonl_writer_as_context_manager(tmp_path: Path):
    path = tmp_path / "data.jsonl.gz"
    with GzipJsonlRecordWriter(path) as writer:
        writer.write_records(_batch({"hello": "world"}))

    with gzip.open(path, "rt", encoding="utf-8") as fp:
        assert json.loads(fp.readline()) == {"hello": "world"}


def test_stdout_writer_prints_strings_raw_and_objects_as_json():
    stream = io.StringIO()
    writer = StandardOutputRecordWriter(stream)
    writer.write_records(_batch("plain", {"k": [1, 2]}))

    assert stream.getvalue() == 'plain\n{"k":[1,2]}\n'


def test_stdout_writer_defaults_to_sys_stdout(capsys):
    StandardOutputRecordWriter().write_records(_batch("hi"))

    assert capsys.readouterr().out == "hi\n"


def test_collecting_writer_through_job():
    writer = CollectingRecordWriter()
    report = BatchJob(JobParameters(batch_size=2), reader=IterableRecordReader("abcde"), writer=writer).run()

    assert report.status is JobStatus.COMPLETED
    assert [len(b) for b in writer.batches] == [2, 2, 1]
    assert writer.payloads == list("abcde")
    assert writer.opened and writer.closed


def test_parquet_writer_writes_one_row_group_per_batch(tmp_path: Path):
    pq = pytest.importorskip("pyarrow.parquet")
    from batchflow.sinks.parquet import ParquetRecordWriter

    path = tmp_path / "out.parquet"
    rows = [{"id": n, "name": f"n{n}"} for n in range(5)]
    report = BatchJob(
        JobParameters(batch_size=2),
        reader=IterableRecordReader(rows),
        writer=ParquetRecordWriter(path),
    ).run()

    assert report.status is JobStatus.COMPLETED
    pf = pq.ParquetFile(path)
    assert pf.metadata.num_row_groups == 3
    assert pf.read().to_pylist() == rows


def test_parquet_writer_rejects_non_mapping_payloads(tmp_path: Path):
    pytest.importorskip("pyarrow")
    from batchflow.sinks.parquet import ParquetRecordWriter

    report = BatchJob(
        reader=IterableRecordReader(["not a row"]),
        writer=ParquetRecordWriter(tmp_path / "bad.parquet"),
    ).run()

    assert report.status is JobStatus.FAILED
    assert isinstance(report.last_error, TypeError)
    assert not (tmp_path / "bad.parquet").exists()


def test_parquet_writer_fails_on_column_outside_inferred_schema(tmp_path: Path):
    pq = pytest.importorskip("pyarrow.parquet")
    from batchflow.sinks.parquet import ParquetRecordWriter

    path = tmp_path / "drift.parquet"
    report = BatchJob(
        JobParameters(batch_size=1),
        reader=IterableRecordReader([{"a": 1}, {"a": 2, "b": 3}]),
        writer=ParquetRecordWriter(path),
    ).run()

    assert report.status is JobStatus.FAILED
    assert isinstance(report.last_error, ValueError)
    assert "['b']" in str(report.last_error)
    assert report.metrics.write_count == 1
    assert pq.read_table(path).to_pylist() == [{"a": 1}]


def test_parquet_writer_infers_columns_from_every_row_of_first_batch(tmp_path: Path):
    pq = pytest.importorskip("pyarrow.parquet")
    from batchflow.sinks.parquet import ParquetRecordWriter

    path = tmp_path / "union.parquet"
    report = BatchJob(
        JobParameters(batch_size=2),
        reader=IterableRecordReader([{"a": 1}, {"a": 2, "b": 3}]),
        writer=ParquetRecordWriter(path),
    ).run()

    assert report.status is JobStatus.COMPLETED
    assert pq.read_table(path).to_pylist() == [{"a": 1, "b": None}, {"a": 2, "b": 3}]


def test_parquet_writer_reinfers_schema_on_each_run(tmp_path: Path):
    pq = pytest.importorskip("pyarrow.parquet")
    from batchflow.sinks.parquet import ParquetRecordWriter

    path = tmp_path / "rerun.parquet"
    writer = ParquetRecordWriter(path)
    first = BatchJob(reader=IterableRecordReader([{"a": 1}]), writer=writer).run()
    second = BatchJob(reader=IterableRecordReader([{"b": "x"}]), writer=writer).run()

    assert first.status is second.status is JobStatus.COMPLETED
    assert pq.read_table(path).to_pylist() == [{"b": "x"}]


def test_parquet_writer_keeps_declared_schema_across_runs(tmp_path: Path):
    pa = pytest.importorskip("pyarrow")
    pq = pytest.importorskip("pyarrow.parquet")
    from batchflow.sinks.parquet import ParquetRecordWriter

    path = tmp_path / "declared.parquet"
    schema = pa.schema([("a", pa.int64()), ("b", pa.string())])
    writer = ParquetRecordWriter(path, schema=schema)
    BatchJob(reader=IterableRecordReader([{"a": 1}]), writer=writer).run()
    report = BatchJob(reader=IterableRecordReader([{"b": "x"}]), writer=writer).run()

    assert report.status is JobStatus.COMPLETED
    table = pq.read_table(path)
    assert table.schema.equals(schema)
    assert table.to_pylist() == [{"a": None, "b": "x"}]
