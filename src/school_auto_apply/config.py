"""Configuration management for the School Auto-Apply engine."""

from typing import Dict, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Configuration
    debug: bool = Field(False, description="Enable debug mode")
    log_level: str = Field("INFO", description="Logging level")

    # Browser Configuration
    browser_headless: bool = Field(True, description="Run browser in headless mode")
    browser_slow_mo_ms: Optional[int] = Field(None, description="Slow down Playwright operations by this many ms")
    browser_user_agent: Optional[str] = Field(None, description="Override the browser user agent")
    browser_locale: str = Field("en-US", description="Browser context locale")
    browser_timezone: str = Field("UTC", description="Browser context timezone id")
    browser_proxy_server: Optional[str] = Field(None, description="Proxy server URL")
    browser_proxy_username: Optional[str] = Field(None, description="Proxy username")
    browser_proxy_password: Optional[str] = Field(None, description="Proxy password")
    browser_args: list[str] = Field(default_factory=list, description="Extra Chromium launch arguments")

    # Automation timeouts (milliseconds)
    navigation_timeout_ms: int = Field(45_000, description="Page navigation timeout")
    network_idle_timeout_ms: int = Field(15_000, description="Wait-for-network-idle timeout")
    submit_timeout_ms: int = Field(30_000, description="Wait after clicking a submit control")
    login_submit_timeout_ms: int = Field(30_000, description="Wait after submitting a login form")
    typing_delay_ms: Optional[int] = Field(None, description="Per-key delay when typing field values")

    # Artifacts and scripts
    artifact_dir: str = Field("tmp/auto-apply", description="Directory for failure screenshots and HTML dumps")
    enabled_scripts: Optional[list[str]] = Field(None, description="Restrict the registry to these school ids")

    # Data source for templates, stored answers and accounts
    data_file: Optional[str] = Field(None, description="JSON document backing the template repository")

    # Server Configuration
    api_host: str = Field("0.0.0.0", description="API server host")
    api_port: int = Field(8000, description="API server port")
    reload: bool = Field(False, description="Enable auto-reload")
    allowed_origins: list[str] = Field(["*"], description="CORS allowed origins")
    allowed_hosts: Optional[list[str]] = Field(None, description="Trusted hosts")

    # Security
    api_tokens: Dict[str, str] = Field(default_factory=dict, description="Bearer token to user id table")


# Global settings instance
settings = Settings()
