"""Tests for JsonFormatter: context ids, extra fields, exception text."""

import json
import logging
import sys

from palletflow.config.logging import JsonFormatter
from palletflow.core.context import actor_id_ctx, correlation_id_ctx


def _record(msg="scan_recorded", exc_info=None, **extra) -> logging.LogRecord:
    record = logging.LogRecord("palletflow.test", logging.INFO, __file__, 1, msg, None, exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formats_json_with_context():
    corr_token = correlation_id_ctx.set("corr-9")
    actor_token = actor_id_ctx.set("op-1")
    try:
        payload = json.loads(JsonFormatter().format(_record(pallet_id="PLT001", sequence=3)))
    finally:
        correlation_id_ctx.reset(corr_token)
        actor_id_ctx.reset(actor_token)

    assert payload["message"] == "scan_recorded"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "palletflow.test"
    assert payload["correlation_id"] == "corr-9"
    assert payload["actor_id"] == "op-1"
    assert payload["pallet_id"] == "PLT001"
    assert payload["sequence"] == 3
    assert "timestamp" in payload


def test_includes_exception_text():
    try:
        raise ValueError("bad scan")
    except ValueError:
        payload = json.loads(JsonFormatter().format(_record("scan_failed", exc_info=sys.exc_info())))
    assert "ValueError: bad scan" in payload["exc_info"]


def test_non_serializable_extra_is_stringified():
    payload = json.loads(JsonFormatter().format(_record(fields={"item_name"})))
    assert payload["fields"] == "{'item_name'}"
