from __future__ import annotations

import pytest

from shopview.config import ApiConfig, BrowseConfig, ShopviewConfig, load_config


def test_load_config_reads_api_and_browse_sections(tmp_path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        '[api]\norigin = "https://shop.example"\nmax_attempts = 5\n\n'
        "[browse]\nfacet_cache_ttl_seconds = 60\npage_window = 7\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.api.origin == "https://shop.example"
    assert config.api.max_attempts == 5
    assert config.api.timeout == 10
    assert config.browse.facet_cache_ttl_seconds == 60
    assert config.browse.page_window == 7
    assert config.browse.fetch_timeout_seconds == 20.0
    assert config.config_path == path


def test_load_config_exits_when_file_is_missing(tmp_path) -> None:
    with pytest.raises(SystemExit) as exc_info:
        load_config(tmp_path / "missing.toml")
    assert exc_info.value.code == 1


def test_load_config_exits_on_invalid_values(tmp_path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[api]\nmax_attempts = 0\n", encoding="utf-8")

    with pytest.raises(SystemExit) as exc_info:
        load_config(path)
    assert exc_info.value.code == 1


def test_share_base_url_defaults_to_shop_path() -> None:
    config = ShopviewConfig(api=ApiConfig(origin="https://shop.example/"))
    assert config.share_base_url == "https://shop.example/shop"

    config = ShopviewConfig(browse=BrowseConfig(share_base_url="https://links.example/s"))
    assert config.share_base_url == "https://links.example/s"
