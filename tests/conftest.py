"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import os
import sys
from pathlib import Path

import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set environment for testing
os.environ["APP_ENV"] = "development"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["OTEL_EXPORTER_TYPE"] = "none"

# The global provider can only be installed once per process
_exporter = InMemorySpanExporter()
_provider = TracerProvider()
_provider.add_span_processor(SimpleSpanProcessor(_exporter))
trace.set_tracer_provider(_provider)


@pytest.fixture
def exporter():
    """In-memory exporter holding the spans finished by the current test."""
    _exporter.clear()
    yield _exporter
    _exporter.clear()


@pytest.fixture
def finished(exporter):
    """Return a function listing spans finished by otelspan, by name."""

    def get(name=None):
        spans = [s for s in exporter.get_finished_spans() if s.instrumentation_scope.name == "otelspan"]
        if name is None:
            return list(spans)
        return [s for s in spans if s.name == name]

    return get
