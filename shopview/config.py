"""
config.py - Configuration model for Shopview
"""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field
from rich.console import Console
import sys

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

console = Console()


class ApiConfig(BaseModel):
    origin: str = Field(
        default="http://localhost:8787",
        description="Base URL of the shop API (products and filters endpoints live below it)"
    )
    timeout: int = Field(default=10, description="Per-request HTTP timeout in seconds")
    max_attempts: int = Field(default=3, ge=1, description="Attempts for transient failures (timeouts, 429, 5xx)")
    max_concurrency: int = Field(default=4, ge=1)


class BrowseConfig(BaseModel):
    """Parameters that control the browsing controller."""

    fetch_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Upper bound for a single result or facet fetch, retries included"
    )
    facet_cache_ttl_seconds: int = Field(
        default=300,
        ge=0,
        description="Lifetime of cached facet lists used as a fallback when the live fetch fails"
    )
    facet_scope: str = Field(default="products")
    page_window: int = Field(default=5, ge=1, description="Number of page buttons shown around the current page")
    share_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for shareable links; defaults to <origin>/shop"
    )


class ShopviewConfig(BaseModel):
    api: ApiConfig = Field(default_factory=ApiConfig)
    browse: BrowseConfig = Field(default_factory=BrowseConfig)
    config_path: Optional[Path] = None

    @property
    def share_base_url(self) -> str:
        return self.browse.share_base_url or f"{self.api.origin.rstrip('/')}/shop"


def load_config(config_path: Path) -> ShopviewConfig:
    """Load configuration from TOML file"""

    if not config_path.exists():
        console.print(f"[red][ERROR][/red] Configuration file not found: {config_path}")
        console.print("Please create config.toml with at least an [api] origin")
        sys.exit(1)

    try:
        with open(config_path, "rb") as f:
            config_data = tomllib.load(f)

        config = ShopviewConfig(
            api=ApiConfig(**config_data.get("api", {})),
            browse=BrowseConfig(**config_data.get("browse", {})),
            config_path=config_path
        )

        return config

    except Exception as e:
        console.print(f"[red][ERROR][/red] Error loading configuration: {e}")
        sys.exit(1)
