import dataclasses

import pytest

from batchflow.core.config import JobParameters
from batchflow.core.records import Batch, Header, make_record
from batchflow.core.report import JobMetrics, JobReport, JobStatus, merge_reports


def test_record_is_immutable_and_with_payload_keeps_header():
    record = make_record(4, {"a": 1}, source="users.jsonl")
    mapped = record.with_payload("text")

    assert mapped.header is record.header
    assert mapped.payload == "text"
    with pytest.raises(dataclasses.FrozenInstanceError):
        record.payload = "other"  # type: ignore[misc]
    assert "number=4" in str(record)


def test_header_as_dict():
    header = Header(number=2, source="s")
    data = header.as_dict()

    assert data["number"] == 2
    assert data["source"] == "s"
    assert "T" in data["creation_date"]


def test_batch_behaves_like_ordered_sequence():
    batch = Batch()
    assert batch.is_empty()
    assert not batch
    assert repr(batch) == "Batch(size=0)"

    for n in (1, 2, 3):
        batch.add(make_record(n, n * 10))

    assert len(batch) == batch.size == 3
    assert batch.payloads() == [10, 20, 30]
    assert [r.header.number for r in batch] == [1, 2, 3]
    assert isinstance(batch.records, tuple)
    assert repr(batch) == "Batch(size=3, records=#1..#3)"
    assert batch == Batch(batch.records)


def test_metrics_counters_and_times():
    m = JobMetrics()
    m.increment_read_count()
    m.increment_write_count(3)
    m.increment_filtered_count()
    m.increment_error_count()
    m.mark_start(100.0)
    m.mark_end(102.5)

    assert (m.read_count, m.write_count, m.filtered_count, m.error_count) == (1, 3, 1, 1)
    assert m.duration == pytest.approx(2.5)
    with pytest.raises(RuntimeError):
        m.mark_start()
    with pytest.raises(ValueError):
        m.increment_write_count(-1)


def test_metrics_as_dict_includes_custom_metrics_only_when_set():
    m = JobMetrics()
    assert "custom_metrics" not in m.as_dict()
    assert m.as_dict()["duration"] is None

    m.add_metric("rows_skipped", 4)
    assert m.as_dict()["custom_metrics"] == {"rows_skipped": 4}


def _report(**kwargs):
    params = JobParameters(name="nightly", batch_size=10, error_threshold=2)
    return JobReport(job_name="nightly", parameters=params, **kwargs)


def test_report_as_dict_shape():
    report = _report(status=JobStatus.FAILED, last_error=ValueError("bad row"))
    data = report.as_dict()

    assert data["job_name"] == "nightly"
    assert data["status"] == "failed"
    assert data["parameters"]["error_threshold"] == "2"
    assert data["metrics"]["read_count"] == 0
    assert data["last_error"] == "ValueError: bad row"
    assert not report.succeeded


def test_report_format_is_human_readable():
    report = _report(status=JobStatus.COMPLETED)
    text = str(report)

    assert text.startswith("Job Report:")
    assert "Name = nightly" in text
    assert "Status = COMPLETED" in text
    assert "Duration = N/A" in text


def test_merge_reports_sums_counters():
    a = _report(status=JobStatus.COMPLETED)
    a.metrics.read_count = 5
    a.metrics.write_count = 5
    b = _report(status=JobStatus.FAILED, last_error=OSError("disk"))
    b.metrics.read_count = 2
    b.metrics.error_count = 1

    merged = merge_reports([a.as_dict(), b.as_dict()])

    assert merged["jobs"] == 2
    assert merged["statuses"] == {"completed": 1, "failed": 1}
    assert merged["metrics"]["read_count"] == 7
    assert merged["metrics"]["error_count"] == 1
    assert merged["errors"] == [{"job_name": "nightly", "error": "OSError: disk"}]


def test_status_terminality():
    assert JobStatus.COMPLETED.is_terminal
    assert JobStatus.FAILED.is_terminal
    assert not JobStatus.STOPPING.is_terminal
