"""OpenTelemetry tracing for agent runs

Every specialist invocation becomes one CLIENT span named
``invoke_agent <agent>`` carrying GenAI semantic-convention attributes
(agent name, model, token usage) and an ERROR status when the call fails.

Finished spans go to two places:
    - a bounded in-memory buffer served by the web host's /telemetry route
    - an OTLP exporter, when an endpoint is configured
"""
from __future__ import annotations

import logging
import os
import platform
import threading
from collections import deque
from contextlib import contextmanager, nullcontext
from datetime import UTC, datetime

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import SpanKind, Status, StatusCode

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_ERROR = "error"

ATTR_OPERATION = "gen_ai.operation.name"
ATTR_SYSTEM = "gen_ai.system"
ATTR_AGENT_NAME = "gen_ai.agent.name"
ATTR_MODEL = "gen_ai.request.model"
ATTR_INPUT_TOKENS = "gen_ai.usage.input_tokens"
ATTR_OUTPUT_TOKENS = "gen_ai.usage.output_tokens"
ATTR_PROMPT = "gen_ai.prompt"
ATTR_COMPLETION = "gen_ai.completion"
ATTR_WORKFLOW = "workflow.name"
ATTR_ERROR_TYPE = "error.type"


class RecentSpanProcessor(SpanProcessor):
    """Keeps the last max_spans finished spans, oldest dropped first"""

    def __init__(self, max_spans: int = 500):
        self._spans: deque[ReadableSpan] = deque(maxlen=max_spans)
        self._lock = threading.Lock()

    def on_end(self, span: ReadableSpan) -> None:
        with self._lock:
            self._spans.append(span)

        attributes = span.attributes or {}
        logger.info(
            "span %s status=%s duration_ms=%d tokens=%s/%s",
            span.name,
            span.status.status_code.name,
            _duration_ms(span),
            attributes.get(ATTR_INPUT_TOKENS, 0),
            attributes.get(ATTR_OUTPUT_TOKENS, 0),
        )

    def spans(self) -> list[ReadableSpan]:
        with self._lock:
            return list(self._spans)

    def clear(self) -> int:
        with self._lock:
            total = len(self._spans)
            self._spans.clear()
        return total


def _duration_ms(span: ReadableSpan) -> int:
    if span.start_time is None or span.end_time is None:
        return 0
    return (span.end_time - span.start_time) // 1_000_000


def span_to_dict(span: ReadableSpan) -> dict:
    """Flatten a finished agent span for JSON output"""
    attributes = span.attributes or {}
    failed = span.status.status_code is StatusCode.ERROR
    return {
        "name": span.name,
        "trace_id": format(span.context.trace_id, "032x"),
        "span_id": format(span.context.span_id, "016x"),
        "workflow": attributes.get(ATTR_WORKFLOW),
        "agent": attributes.get(ATTR_AGENT_NAME),
        "model": attributes.get(ATTR_MODEL),
        "started_at": datetime.fromtimestamp(span.start_time / 1e9, UTC).isoformat(),
        "duration_ms": _duration_ms(span),
        "status": STATUS_ERROR if failed else STATUS_OK,
        "input_tokens": attributes.get(ATTR_INPUT_TOKENS, 0),
        "output_tokens": attributes.get(ATTR_OUTPUT_TOKENS, 0),
        "error": span.status.description if failed else None,
        "input_text": attributes.get(ATTR_PROMPT),
        "output_text": attributes.get(ATTR_COMPLETION),
    }


class AgentSpan:
    """Handle used while an agent call is in flight"""

    def __init__(self, span: trace.Span, sensitive_data: bool = False):
        self.span = span
        self.sensitive_data = sensitive_data

    def record_usage(self, input_tokens: int, output_tokens: int) -> None:
        self.span.set_attribute(ATTR_INPUT_TOKENS, input_tokens)
        self.span.set_attribute(ATTR_OUTPUT_TOKENS, output_tokens)

    def record_output(self, text: str) -> None:
        if self.sensitive_data and text:
            self.span.set_attribute(ATTR_COMPLETION, text)

    def record_error(self, exc: BaseException) -> None:
        self.span.record_exception(exc)
        self.span.set_attribute(ATTR_ERROR_TYPE, type(exc).__name__)
        self.span.set_status(Status(StatusCode.ERROR, str(exc)))


class TelemetryRecorder:
    """Tracer provider for one service, with recent spans kept for inspection

    Args:
        service_name: Value of the service.name resource attribute
        service_version: Value of service.version
        max_spans: Size of the in-memory span buffer
        sensitive_data: Record prompt and completion text on spans
        environment: deployment.environment, defaults to $DEPLOYMENT_ENVIRONMENT
        otlp_endpoint: gRPC OTLP collector, e.g. http://localhost:4317
    """

    def __init__(
        self,
        service_name: str,
        service_version: str = "1.0.0",
        max_spans: int = 500,
        sensitive_data: bool = False,
        environment: str | None = None,
        otlp_endpoint: str | None = None,
    ):
        self.service_name = service_name
        self.sensitive_data = sensitive_data
        self.resource = Resource.create({
            "service.name": service_name,
            "service.version": service_version,
            "deployment.environment": environment
            or os.getenv("DEPLOYMENT_ENVIRONMENT", "development"),
            "service.instance.id": platform.node(),
        })
        # an atexit flush is only needed when spans leave the process
        self.provider = TracerProvider(
            resource=self.resource, shutdown_on_exit=bool(otlp_endpoint)
        )
        self._recent = RecentSpanProcessor(max_spans)
        self.provider.add_span_processor(self._recent)

        if otlp_endpoint:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )

            self.provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint))
            )
            logger.info("Exporting spans to OTLP endpoint %s", otlp_endpoint)

        self.tracer = self.provider.get_tracer(service_name, service_version)

    @contextmanager
    def agent_span(
        self,
        workflow: str,
        agent: str,
        model: str,
        input_text: str | None = None,
    ):
        attributes = {
            ATTR_OPERATION: "invoke_agent",
            ATTR_SYSTEM: "anthropic",
            ATTR_AGENT_NAME: agent,
            ATTR_MODEL: model,
            ATTR_WORKFLOW: workflow,
        }
        if self.sensitive_data and input_text:
            attributes[ATTR_PROMPT] = input_text

        with self.tracer.start_as_current_span(
            f"invoke_agent {agent}",
            kind=SpanKind.CLIENT,
            attributes=attributes,
        ) as span:
            yield AgentSpan(span, self.sensitive_data)

    def resource_attributes(self) -> dict[str, str]:
        return {key: str(value) for key, value in self.resource.attributes.items()}

    def spans(self, limit: int | None = None) -> list[dict]:
        """Finished spans, oldest first; limit keeps the most recent ones"""
        spans = self._recent.spans()
        if limit is not None:
            spans = spans[-limit:] if limit > 0 else []
        return [span_to_dict(span) for span in spans]

    def summary(self) -> dict[str, dict]:
        """Per-agent runs, errors, average latency and token totals"""
        totals: dict[str, dict] = {}
        for span in self.spans():
            agent = span["agent"] or span["name"]
            stats = totals.setdefault(agent, {
                "runs": 0,
                "errors": 0,
                "total_duration_ms": 0,
                "input_tokens": 0,
                "output_tokens": 0,
            })
            stats["runs"] += 1
            stats["total_duration_ms"] += span["duration_ms"]
            stats["input_tokens"] += span["input_tokens"]
            stats["output_tokens"] += span["output_tokens"]
            if span["status"] == STATUS_ERROR:
                stats["errors"] += 1

        return {
            agent: {
                "runs": stats["runs"],
                "errors": stats["errors"],
                "avg_duration_ms": round(stats["total_duration_ms"] / stats["runs"], 1),
                "input_tokens": stats["input_tokens"],
                "output_tokens": stats["output_tokens"],
            }
            for agent, stats in totals.items()
        }

    def clear(self) -> int:
        return self._recent.clear()

    def shutdown(self) -> None:
        self.provider.shutdown()


def agent_span(
    recorder: TelemetryRecorder | None,
    workflow: str,
    agent: str,
    model: str,
    input_text: str | None = None,
):
    """Recorder span, or a non-recording one when telemetry is off"""
    if recorder is None:
        return nullcontext(AgentSpan(trace.INVALID_SPAN))
    return recorder.agent_span(workflow, agent, model, input_text)
