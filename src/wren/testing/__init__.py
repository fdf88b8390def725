"""Test utilities for wren pipelines.

Provides a test client, recording collaborator sinks, and response
assertions::

    from wren.testing import RecordingMetrics, TestClient, assert_status
"""

from wren.testing.assertions import assert_body, assert_header, assert_status
from wren.testing.client import TestClient
from wren.testing.sinks import RecordingLog, RecordingMetrics

__all__ = [
    "RecordingLog",
    "RecordingMetrics",
    "TestClient",
    "assert_body",
    "assert_header",
    "assert_status",
]
