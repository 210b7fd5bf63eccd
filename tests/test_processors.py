from dataclasses import dataclass

import pytest

from batchflow.core.config import JobParameters
from batchflow.core.errors import RecordValidationError
from batchflow.core.job import BatchJob
from batchflow.core.processing import CompositeRecordProcessor, coerce_processor
from batchflow.core.records import make_record
from batchflow.core.report import JobStatus
from batchflow.processors.filters import FilteringProcessor, MappingProcessor, ValidatingProcessor
from batchflow.processors.marshallers import CsvRecordMarshaller, JsonRecordMapper, JsonRecordMarshaller
from batchflow.sinks.sinks import CollectingRecordWriter
from batchflow.sources.iterable import IterableRecordReader


@dataclass
class Person:
    name: str
    age: int | None


def test_composite_runs_in_order_and_short_circuits_on_filter():
    calls = []

    def first(record):
        calls.append("first")
        return None

    def second(record):  # pragma: no cover - must not run
        calls.append("second")
        return record

    chain = CompositeRecordProcessor([first, second])

    assert chain.process_record(make_record(1, "x")) is None
    assert calls == ["first"]
    assert len(chain) == 2


def test_coerce_processor_rejects_non_callables():
    with pytest.raises(TypeError):
        coerce_processor(42)  # type: ignore[arg-type]


def test_coerce_processor_keeps_processor_objects():
    proc = MappingProcessor(str)

    assert coerce_processor(proc) is proc


def test_filter_and_mapper():
    keep_even = FilteringProcessor(lambda n: n % 2 == 0)
    double = MappingProcessor(lambda n: n * 2)
    record = make_record(5, 4)

    kept = keep_even.process_record(record)
    assert kept is record
    assert keep_even.process_record(make_record(6, 3)) is None
    assert double.process_record(record).payload == 8
    assert double.process_record(record).header is record.header


def test_validator_rejects_with_problems():
    def check(payload):
        return [] if payload.get("email") else ["missing email"]

    validator = ValidatingProcessor(check)

    assert validator.process_record(make_record(1, {"email": "a@b"})).payload == {"email": "a@b"}
    with pytest.raises(RecordValidationError) as excinfo:
        validator.process_record(make_record(2, {}))
    assert excinfo.value.problems == ("missing email",)
    assert str(excinfo.value) == "missing email"


def test_validation_failures_count_as_errors_in_a_job():
    writer = CollectingRecordWriter()
    job = BatchJob(
        JobParameters(error_threshold=1),
        reader=IterableRecordReader([{"id": 1}, {}, {"id": 3}]),
        writer=writer,
        processors=[ValidatingProcessor(lambda p: [] if "id" in p else ["no id"])],
    )

    report = job.run()

    assert report.status is JobStatus.COMPLETED
    assert report.metrics.error_count == 1
    assert writer.payloads == [{"id": 1}, {"id": 3}]
    assert isinstance(report.last_error, RecordValidationError)


def test_csv_marshaller_from_mapping_quotes_all_fields():
    marshaller = CsvRecordMarshaller(["name", "age"])

    out = marshaller.process_record(make_record(1, {"name": 'Ada "the first"', "age": 36}))

    assert out.payload == '"Ada ""the first""","36"'


def test_csv_marshaller_from_attributes_with_custom_delimiter():
    marshaller = CsvRecordMarshaller(["name", "age"], delimiter=";", quote_all=False)

    out = marshaller.process_record(make_record(1, Person(name="bob", age=None)))

    assert out.payload == "bob;"


def test_csv_marshaller_missing_field_raises():
    with pytest.raises(KeyError):
        CsvRecordMarshaller(["name"]).process_record(make_record(1, {"age": 1}))


def test_csv_marshaller_needs_fields():
    with pytest.raises(ValueError):
        CsvRecordMarshaller()


def test_json_marshaller_and_mapper():
    marshalled = JsonRecordMarshaller(sort_keys=True).process_record(make_record(1, {"b": 1, "a": "é"}))
    assert marshalled.payload == '{"a":"é","b":1}'

    parsed = JsonRecordMapper().process_record(marshalled)
    assert parsed.payload == {"a": "é", "b": 1}
    assert JsonRecordMapper().process_record(make_record(2, b"[1, 2]")).payload == [1, 2]


def test_json_mapper_malformed_text_is_processing_error():
    writer = CollectingRecordWriter()
    report = BatchJob(
        JobParameters(error_threshold=0),
        reader=IterableRecordReader(['{"ok": 1}', "{oops"]),
        writer=writer,
        processors=[JsonRecordMapper()],
    ).run()

    assert report.status is JobStatus.FAILED
    assert report.metrics.error_count == 1
    assert writer.payloads == [{"ok": 1}]
