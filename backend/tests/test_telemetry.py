from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import List

import pytest

from study_pacer.daily_allocator import CompletionAttribution
from study_pacer.telemetry import (
    TelemetryEvent,
    capture_events,
    clear_listeners,
    emit_event,
    register_listener,
    unregister_listener,
)


@pytest.fixture(autouse=True)
def _reset_listeners():
    clear_listeners()
    yield
    clear_listeners()


def test_emit_event_sanitizes_payload() -> None:
    received: List[TelemetryEvent] = []
    register_listener(received.append)

    emit_event(
        "quota_calculated",
        plan_id="plan-1",
        deadline=date(2026, 10, 30),
        at=datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc),
        attribution=CompletionAttribution.ROUND_SCOPED,
    )

    assert len(received) == 1
    payload = received[0].payload
    assert payload["deadline"] == "2026-10-30"
    assert payload["at"] == "2026-10-19T09:00:00+00:00"
    assert payload["attribution"] == "round_scoped"


def test_failing_listener_does_not_break_emission(caplog) -> None:
    received: List[TelemetryEvent] = []

    def broken(event: TelemetryEvent) -> None:
        raise RuntimeError("listener exploded")

    register_listener(broken)
    register_listener(received.append)

    with caplog.at_level(logging.INFO, logger="study_pacer.telemetry"):
        emit_event("plan_generated", plan_id="plan-1", status="success")

    assert [event.name for event in received] == ["plan_generated"]
    assert "Telemetry listener failed for plan_generated" in caplog.text
    assert "TELEMETRY" in caplog.text


def test_capture_events_filters_by_name_and_detaches() -> None:
    with capture_events("planning_fallback") as captured:
        emit_event("quota_calculated", plan_id="plan-1")
        emit_event("planning_fallback", plan_id="plan-1", reason="overflow")
    emit_event("planning_fallback", plan_id="plan-1", reason="no_study_dates")

    assert [event.payload["reason"] for event in captured] == ["overflow"]


def test_unregistered_listener_stops_receiving() -> None:
    received: List[TelemetryEvent] = []
    register_listener(received.append)
    emit_event("review_recorded", item_id="unit-1")
    unregister_listener(received.append)
    emit_event("review_recorded", item_id="unit-2")

    assert [event.payload["item_id"] for event in received] == ["unit-1"]


def test_quiet_telemetry_logger_still_notifies_listeners(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="study_pacer.telemetry"):
        with capture_events() as captured:
            emit_event("plan_generated", plan_id="plan-1", status="success")

    assert len(captured) == 1
    assert "TELEMETRY" not in caplog.text
