"""@traced spans: allowlisted argument attributes and error status."""

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from app.domain.enums import TaskStatus
from app.shared.telemetry import tracing
from app.shared.telemetry.tracing import traced


@pytest.fixture
def exporter(monkeypatch) -> InMemorySpanExporter:
    memory = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(memory))
    monkeypatch.setattr(tracing, "_tracer", provider.get_tracer("tests"))
    return memory


@traced("tests.bulk_update")
async def _bulk_update(task_ids: list[str], status: TaskStatus, title: str | None = None) -> int:
    return len(task_ids)


@traced("tests.failing")
async def _failing(task_id: str) -> None:
    raise ValueError("nope")


async def test_span_records_allowlisted_arguments(exporter) -> None:
    result = await _bulk_update(["a", "b", "c"], TaskStatus.COMPLETED, title="private")

    assert result == 3
    (span,) = exporter.get_finished_spans()
    assert span.name == "tests.bulk_update"
    assert span.attributes["arg.task_ids"] == 3
    assert span.attributes["arg.status"] == TaskStatus.COMPLETED.value
    assert "arg.title" not in span.attributes
    assert span.status.status_code is StatusCode.OK


async def test_span_marks_error_and_reraises(exporter) -> None:
    with pytest.raises(ValueError):
        await _failing("t1")

    (span,) = exporter.get_finished_spans()
    assert span.status.status_code is StatusCode.ERROR
    assert span.attributes["arg.task_id"] == "t1"
    assert any(event.name == "exception" for event in span.events)


def test_sync_functions_are_rejected() -> None:
    with pytest.raises(TypeError, match="coroutine"):

        @traced("tests.sync")
        def _sync() -> None:
            return None
