from __future__ import annotations

from rich.text import Text

import shopview.logger as shop_logger


def test_debug_drops_when_debug_disabled(monkeypatch):
    log = shop_logger.ShopviewLogger(debug=False)
    captured: list[tuple[str, str]] = []
    monkeypatch.setattr(log, "log", lambda msg, prefix="": captured.append((prefix, msg)))

    log.debug("fetching page 2")
    log.api_request("GET", "https://shop.example/shop/products", [("page", "2")])
    log.api_response(200, {"data": []}, 12.0)

    assert captured == []


def test_debug_emits_with_timestamp_when_enabled(monkeypatch):
    log = shop_logger.ShopviewLogger(debug=True)
    captured: list[tuple[str, str]] = []
    monkeypatch.setattr(log, "log", lambda msg, prefix="": captured.append((prefix, msg)))

    log.debug("fetching page 2")

    assert len(captured) == 1
    prefix, msg = captured[0]
    assert "[DEBUG]" in prefix
    assert msg == "fetching page 2"


def test_api_retry_and_failure_messages(monkeypatch):
    log = shop_logger.ShopviewLogger(debug=False)
    captured: list[tuple[str, str]] = []
    monkeypatch.setattr(log, "log", lambda msg, prefix="": captured.append((prefix, msg)))

    log.api_retry("Shop API", 1, 3, 2)
    log.api_failed("Shop API", 3)

    assert captured == [
        ("[WARNING] ", "Shop API request failed. Retrying in 2s... (attempt 1/3)"),
        ("[ERROR] ", "Shop API not responding after 3 attempts. Giving up."),
    ]


def test_screen_text_styles_level_prefixes(monkeypatch):
    log = shop_logger.ShopviewLogger(debug=False)
    monkeypatch.setattr(log._console, "print", lambda *_args, **_kwargs: None)

    warning = log._screen_text("[WARNING] Tags facets unavailable")
    plain = log._screen_text("[red] is a tag, not markup")

    assert isinstance(warning, Text)
    assert any(span.style == "yellow" for span in warning.spans)
    assert plain.plain == "[red] is a tag, not markup"
    assert plain.spans == []


def test_log_writes_plain_text_to_file(tmp_path, monkeypatch):
    out = tmp_path / "logs" / "shopview.log"
    log = shop_logger.ShopviewLogger(log_file=out, debug=False)
    monkeypatch.setattr(log._console, "print", lambda *_args, **_kwargs: None)

    log.warning("[Page 1/2] literal bracketed message")
    log.close()

    text = out.read_text(encoding="utf-8")
    assert "Started Shopview" in text
    assert "[WARNING] [Page 1/2] literal bracketed message" in text
    assert "Ended session" in text


def test_module_functions_use_global_logger(monkeypatch):
    log = shop_logger.ShopviewLogger(debug=False)
    captured: list[tuple[str, str]] = []
    monkeypatch.setattr(log, "log", lambda msg, prefix="": captured.append((prefix, msg)))
    monkeypatch.setattr(shop_logger, "_logger", None)

    shop_logger.set_logger(log)
    shop_logger.warning("careful")

    assert shop_logger.get_logger() is log
    assert captured == [("[WARNING] ", "careful")]


def test_get_logger_falls_back_to_screen_logger(monkeypatch):
    monkeypatch.setattr(shop_logger, "_logger", None)

    log = shop_logger.get_logger()

    assert isinstance(log, shop_logger.ShopviewLogger)
    assert log.log_file is None
