"""Tests for the pipeline state machine."""

import dataclasses

import pytest

from forecastee.orchestrator.state import (
    PIPELINE_STATES,
    Error,
    FetchingWeather,
    GeneratingSummary,
    GeneratingVideo,
    Idle,
    can_transition,
    status_text,
)


@pytest.mark.parametrize(
    "current, target",
    [
        ("idle", "fetching_weather"),
        ("fetching_weather", "generating_summary"),
        ("generating_summary", "generating_video"),
        ("generating_video", "success"),
        ("fetching_weather", "error"),
        ("generating_summary", "error"),
        ("generating_video", "error"),
        ("success", "fetching_weather"),
        ("error", "fetching_weather"),
        ("success", "idle"),
        ("generating_video", "idle"),
    ],
)
def test_allowed_transitions(current, target):
    assert can_transition(current, target)


@pytest.mark.parametrize(
    "current, target",
    [
        ("idle", "success"),
        ("idle", "error"),
        ("fetching_weather", "success"),
        ("fetching_weather", "generating_video"),
        ("generating_summary", "fetching_weather"),
        ("success", "error"),
        ("error", "success"),
    ],
)
def test_rejected_transitions(current, target):
    assert not can_transition(current, target)


def test_status_text():
    assert status_text(FetchingWeather("Berlin")) == "Fetching Forecast..."
    assert status_text(Idle()) == "Loading..."
    assert status_text(Error("Berlin", "boom")) == "Loading..."


def test_active_state_text(berlin, weather):
    assert status_text(GeneratingSummary("Berlin", berlin, weather)) == "Analyzing Data..."
    assert status_text(GeneratingVideo("Berlin", berlin, weather, "s")) == "Producing Video Report..."


def test_states_are_immutable():
    state = Error("Berlin", "boom")

    with pytest.raises(dataclasses.FrozenInstanceError):
        state.message = "other"


def test_every_state_is_described():
    for cls in (Idle, FetchingWeather, GeneratingSummary, GeneratingVideo, Error):
        assert cls.status in PIPELINE_STATES
