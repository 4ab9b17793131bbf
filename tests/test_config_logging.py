from __future__ import annotations

import json
import logging
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from permit_reports.core.config import Settings
from permit_reports.core.logging import JSONFormatter, request_id_var


def test_settings_parse_comma_separated_origins_and_defaults() -> None:
    settings = Settings(allowed_origins="http://a.test, http://b.test,", log_level="debug")

    assert settings.allowed_origins == ["http://a.test", "http://b.test"]
    assert settings.log_level == "DEBUG"
    assert settings.pdf_permit_first_page_rows == 8
    assert settings.pdf_clearance_rows_per_page == 18
    assert settings.report_raster_width_px == 1200


def test_json_formatter_includes_request_id_and_extras() -> None:
    record = logging.LogRecord("permit_reports.access", logging.INFO, __file__, 1, "GET %s", ("/x",), None)
    record.status_code = 200
    token = request_id_var.set("rid-1")
    try:
        entry = json.loads(JSONFormatter().format(record))
    finally:
        request_id_var.reset(token)

    assert entry["message"] == "GET /x"
    assert entry["request_id"] == "rid-1"
    assert entry["status_code"] == 200
    assert entry["level"] == "INFO"


def test_settings_reject_unknown_time_zone() -> None:
    with pytest.raises(ValidationError):
        Settings(report_timezone="Mars/Olympus_Mons")

    assert Settings().report_tzinfo == ZoneInfo("Asia/Manila")
