from __future__ import annotations

from pyswitcher._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "Authorization": "Bearer s3cret",
        "content-type": "application/json",
        "nested": {"cameraApiToken": "abc", "direction": "N"},
        "items": [{"token": "t"}],
    }

    redacted = redact_for_log(payload)
    assert redacted["Authorization"] == "<redacted>"
    assert redacted["content-type"] == "application/json"
    assert redacted["nested"] == {"cameraApiToken": "<redacted>", "direction": "N"}
    assert redacted["items"] == [{"token": "<redacted>"}]


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_passes_scalars_through() -> None:
    assert redact_for_log(None) is None
    assert redact_for_log(3) == 3
    assert redact_for_log(b"\x00\x01") == "<bytes:2b>"
