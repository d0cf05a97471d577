from __future__ import annotations

from pathlib import Path

import campus_router.logging_utils as logging_utils
from campus_router.data_errors import (
    FROZEN_REASON_CODES,
    CampusDataError,
    http_status_for,
    normalize_reason_code,
)
from campus_router.logging_utils import _event_fields, _parse_level, _resolve_log_dir, get_logger, log_event
from campus_router.settings import Settings, settings


def test_campus_data_error_string_and_details() -> None:
    err = CampusDataError(
        reason_code="network_unavailable",
        message="campus network missing",
        details={"path": "backend/out/campus_network.geojson"},
    )
    assert str(err) == "campus network missing"
    assert isinstance(err, ValueError)
    assert err.details is not None
    assert err.details["path"].endswith("campus_network.geojson")


def test_reason_code_normalization_and_http_mapping() -> None:
    assert "destination_unknown" in FROZEN_REASON_CODES
    assert "routing_policy_invalid" in FROZEN_REASON_CODES
    assert normalize_reason_code("mode_unsupported") == "mode_unsupported"
    assert normalize_reason_code("unknown_reason") == "network_unavailable"
    assert normalize_reason_code("", default="network_invalid") == "network_invalid"
    assert http_status_for("destination_unknown") == 404
    assert http_status_for("origin_missing") == 422
    assert http_status_for("network_invalid") == 503
    assert http_status_for("something_else") == 503


def test_logging_helpers_parse_levels_and_emit_event(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(settings, "out_dir", str(tmp_path))

    assert _parse_level("debug") > 0
    assert _parse_level("not_a_level") > 0
    assert _resolve_log_dir(str(tmp_path)) == tmp_path / "logs"

    logger1 = get_logger()
    handlers_before = len(logger1.handlers)
    logger2 = get_logger()
    assert logger1 is logger2
    assert len(logger2.handlers) == handlers_before

    log_event("unit_test_event", destination_id="gate1", legs=2)
    assert logging_utils.LOGGER is logger1


def test_event_fields_do_not_clobber_log_record_attributes() -> None:
    fields = _event_fields({"name": "Gate 1", "module": "x", "path": Path("/tmp/net.geojson"), "legs": 2})
    assert fields == {
        "field_name": "Gate 1",
        "field_module": "x",
        "path": "/tmp/net.geojson",
        "legs": 2,
    }


def test_settings_read_environment_aliases(monkeypatch) -> None:
    monkeypatch.setenv("GRAPH_SNAP_TOLERANCE_M", "5")
    monkeypatch.setenv("ASTAR_MAX_ITERATIONS", "250")
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    monkeypatch.setenv("WALKING_RESCUE_ENABLED", "false")
    fresh = Settings()
    assert fresh.graph_snap_tolerance_m == 5.0
    assert fresh.astar_max_iterations == 250
    assert fresh.log_level == "DEBUG"
    assert fresh.walking_rescue_enabled is False
    assert fresh.speed_walking_mps == 1.4
