from __future__ import annotations

from pyticker._redact import redact_for_log, redact_url


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "ids": "bitcoin",
        "x-cg-pro-api-key": "CG-secret",
        "nested": {"apikey": "abc", "Authorization": "Bearer x"},
    }

    redacted = redact_for_log(payload)
    assert redacted["ids"] == "bitcoin"
    assert redacted["x-cg-pro-api-key"] == "<redacted>"
    assert redacted["nested"]["apikey"] == "<redacted>"
    assert redacted["nested"]["Authorization"] == "<redacted>"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_url_masks_key_query_params() -> None:
    url = "https://api.example.com/v1/price?ids=bitcoin&x_cg_pro_api_key=secret"

    redacted = redact_url(url)

    assert "secret" not in redacted
    assert "ids=bitcoin" in redacted
    assert "x_cg_pro_api_key=<redacted>" in redacted


def test_redact_url_without_query_is_unchanged() -> None:
    url = "https://api.exchange.coinbase.com/products/BTC-USD/stats"
    assert redact_url(url) == url
