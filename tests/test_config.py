import json
from pathlib import Path

import pytest

from batchflow.core.config import (
    JobConfig,
    JobParameters,
    ProcessorSpec,
    ReaderSpec,
    WriterSpec,
    load_config_from_path,
    parse_error_threshold,
)
from batchflow.core.errors import JobConfigurationError
from batchflow.core.policy import UNBOUNDED


def test_parameter_defaults():
    params = JobParameters()

    assert params.name == "job"
    assert params.batch_size == 100
    assert params.error_threshold == UNBOUNDED
    assert params.unbounded_errors
    assert params.monitoring is False
    assert params.as_dict()["error_threshold"] == "N/A"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"batch_size": 0},
        {"batch_size": -5},
        {"batch_size": True},
        {"error_threshold": -1},
        {"error_threshold": 1.5},
        {"name": "  "},
        {"monitoring": "yes"},
    ],
)
def test_invalid_parameters_rejected(kwargs):
    with pytest.raises(JobConfigurationError):
        JobParameters(**kwargs)


def test_with_overrides_validates_and_parses_threshold():
    params = JobParameters(error_threshold=3)

    assert params.with_overrides(error_threshold="unbounded").error_threshold == UNBOUNDED
    assert params.with_overrides(batch_size=7).batch_size == 7
    with pytest.raises(JobConfigurationError):
        params.with_overrides(batch_size=0)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, UNBOUNDED), ("N/A", UNBOUNDED), ("  12 ", 12), (0, 0)],
)
def test_parse_error_threshold(raw, expected):
    assert parse_error_threshold(raw) == expected


def test_parse_error_threshold_rejects_garbage():
    with pytest.raises(JobConfigurationError):
        parse_error_threshold("lots")


def test_parameters_from_dict_rejects_unknown_keys():
    with pytest.raises(JobConfigurationError) as excinfo:
        JobParameters.from_dict({"batch_size": 5, "batchsize": 6})
    assert "batchsize" in str(excinfo.value)


def test_job_config_from_toml(tmp_path: Path):
    path = tmp_path / "job.toml"
    path.write_text(
        """
[parameters]
name = "users"
batch_size = 50
error_threshold = 5

[reader]
kind = "jsonl"
options = { path = "in.jsonl" }

[writer]
kind = "jsonl"

[writer.options]
path = "out.jsonl"

[[processors]]
kind = "json_marshal"

[logging]
level = "DEBUG"
""",
        encoding="utf-8",
    )

    cfg = load_config_from_path(path)

    assert cfg.parameters == JobParameters(name="users", batch_size=50, error_threshold=5)
    assert cfg.reader == ReaderSpec(kind="jsonl", options={"path": "in.jsonl"})
    assert cfg.writer == WriterSpec(kind="jsonl", options={"path": "out.jsonl"})
    assert cfg.processors == [ProcessorSpec(kind="json_marshal")]
    assert cfg.logging.level == "DEBUG"
    cfg.validate()


def test_job_config_json_file_reloads(tmp_path: Path):
    cfg = JobConfig(
        parameters=JobParameters(name="copy", batch_size=2),
        reader=ReaderSpec(kind="csv", options={"path": "in.csv"}),
        writer=WriterSpec(kind="stdout"),
    )
    path = cfg.to_json(tmp_path / "job.json")

    loaded = JobConfig.from_json(path)

    assert json.loads(Path(path).read_text("utf-8"))["parameters"]["error_threshold"] == "N/A"
    assert loaded.parameters == cfg.parameters
    assert loaded.reader == cfg.reader
    assert loaded.writer == cfg.writer


def test_spec_may_be_given_as_bare_kind():
    cfg = JobConfig.from_dict({"reader": "jsonl", "writer": "collect"})

    assert cfg.reader == ReaderSpec(kind="jsonl")
    assert cfg.writer == WriterSpec(kind="collect")


def test_validate_reports_unknown_kind():
    cfg = JobConfig.from_dict({"reader": "jsonl", "writer": "carrier_pigeon"})

    with pytest.raises(JobConfigurationError) as excinfo:
        cfg.validate()
    assert "carrier_pigeon" in str(excinfo.value)


def test_validate_requires_reader_and_writer():
    with pytest.raises(JobConfigurationError):
        JobConfig().validate()


def test_unknown_top_level_keys_rejected():
    with pytest.raises(JobConfigurationError):
        JobConfig.from_dict({"reader": "jsonl", "sinks": []})


def test_with_parameters_returns_copy():
    cfg = JobConfig()
    changed = cfg.with_parameters(name="renamed")

    assert changed.parameters.name == "renamed"
    assert cfg.parameters.name == "job"


def test_load_config_rejects_unknown_extension(tmp_path: Path):
    path = tmp_path / "job.yaml"
    path.write_text("reader: jsonl\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config_from_path(path)
