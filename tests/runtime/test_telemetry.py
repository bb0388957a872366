import logging

import pytest

from hyperd.errors import UnknownDomainError
from hyperd.runtime.telemetry import (
    SPAN_INDEX_BUILD,
    SPAN_NAMES,
    SPAN_PROPAGATE,
    SPAN_TASK_EXECUTE,
    SPAN_WORKFLOW_EXECUTE,
    LoggingTelemetryClient,
    NoOpTelemetryClient,
    SpanRecord,
    TelemetryClient,
)


class CaptureTelemetryClient(TelemetryClient):
    def __init__(self) -> None:
        self.spans: list[tuple[str, dict]] = []

    def emit_span(self, name: str, attributes: dict) -> None:
        self.spans.append((name, attributes))


class RecordSink(TelemetryClient):
    def __init__(self) -> None:
        self.records: list[SpanRecord] = []

    def record(self, record: SpanRecord) -> None:
        self.records.append(record)


def test_span_records_duration_and_attributes():
    client = CaptureTelemetryClient()

    with client.span(SPAN_PROPAGATE, attributes={"hops": 2}) as span:
        span.set_attribute("nodes_visited", 3)

    name, attrs = client.spans[-1]
    assert name == "hyperd.propagate"
    assert attrs["hops"] == 2
    assert attrs["nodes_visited"] == 3
    assert attrs["success"] is True
    assert "error_kind" not in attrs
    assert attrs["duration_ms"] >= 0.0


def test_span_records_error_kind():
    client = CaptureTelemetryClient()

    with pytest.raises(UnknownDomainError):
        with client.span(SPAN_TASK_EXECUTE):
            raise UnknownDomainError("erp")

    _, attrs = client.spans[-1]
    assert attrs["success"] is False
    assert attrs["error_kind"] == "unknown_domain"


def test_record_hook_receives_structured_span():
    sink = RecordSink()

    with pytest.raises(KeyError):
        with sink.span(SPAN_INDEX_BUILD, attributes={"domains": 4}) as span:
            span.set_attribute("nodes", 7)
            raise KeyError("c9")

    (record,) = sink.records
    assert record.name == SPAN_INDEX_BUILD
    assert record.success is False
    assert record.error_kind == "KeyError"
    assert record.attributes == {"domains": 4, "nodes": 7}
    assert record.flat()["success"] is False


def test_span_must_be_entered():
    span = CaptureTelemetryClient().span(SPAN_PROPAGATE)

    with pytest.raises(RuntimeError):
        span.__exit__(None, None, None)


def test_span_names_are_distinct():
    assert len(set(SPAN_NAMES)) == len(SPAN_NAMES)
    assert all(name.startswith("hyperd.") for name in SPAN_NAMES)


def test_noop_client_discards():
    with NoOpTelemetryClient().span(SPAN_INDEX_BUILD) as span:
        span.set_attribute("nodes", 1)


def test_logging_client_emits_record(caplog):
    client = LoggingTelemetryClient()

    with caplog.at_level(logging.INFO, logger="hyperd.runtime.telemetry"):
        with client.span(SPAN_WORKFLOW_EXECUTE, attributes={"workflow": "w"}):
            pass

    (entry,) = caplog.records
    assert entry.levelno == logging.INFO
    assert entry.getMessage().startswith("[telemetry] hyperd.workflow_execute ok")


def test_logging_client_warns_on_failed_span(caplog):
    client = LoggingTelemetryClient()

    with caplog.at_level(logging.INFO, logger="hyperd.runtime.telemetry"):
        with pytest.raises(UnknownDomainError):
            with client.span(SPAN_TASK_EXECUTE, attributes={"domain": "erp"}):
                raise UnknownDomainError("erp")

    (entry,) = caplog.records
    assert entry.levelno == logging.WARNING
    assert "failed (unknown_domain)" in entry.getMessage()
    assert "'domain': 'erp'" in entry.getMessage()
