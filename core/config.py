"""Configuration models and loading."""

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from core.request_types import MountConfig

CONFIG_DIR = Path.home() / ".config" / "mount-proxy"
CONFIG_FILE = CONFIG_DIR / "config.json"
API_URL_ENV = "MOUNT_PROXY_API_URL"


class ProxySettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 5173
    debug: bool = False


class UpstreamSettings(BaseModel):
    base_url: str = "http://localhost:3000"
    max_connections: int = 100
    max_keepalive_connections: int = 20


class HeaderSettings(BaseModel):
    # Extra inbound headers forwarded upstream (e.g. "x-api-key")
    forward_headers: list[str] = Field(default_factory=list)
    # Extra upstream response headers relayed to the caller
    expose_headers: list[str] = Field(default_factory=list)


class TimeoutRule(BaseModel):
    path_contains: str
    methods: list[str] = Field(default_factory=list)
    timeout: float = Field(gt=0, allow_inf_nan=False)


class TimeoutSettings(BaseModel):
    default: float = Field(default=60.0, gt=0, allow_inf_nan=False)
    rules: list[TimeoutRule] = Field(
        default_factory=lambda: [
            TimeoutRule(path_contains="getAppSpec", timeout=180.0),
            TimeoutRule(path_contains="coupons", methods=["PATCH"], timeout=180.0),
            TimeoutRule(
                path_contains="products",
                methods=["POST", "PUT", "PATCH"],
                timeout=180.0,
            ),
        ]
    )


class LimitsSettings(BaseModel):
    max_body_size: int = 50 * 1024 * 1024  # 50MB
    keep_alive_timeout: int = 5


class MountSettings(BaseModel):
    name: str
    prefix: str
    base_path: str

    def to_mount(self) -> MountConfig:
        prefix = "/" + self.prefix.strip("/")
        return MountConfig(name=self.name, prefix=prefix, base_path=self.base_path)


def _default_mounts() -> list[MountSettings]:
    return [
        MountSettings(name="api", prefix="/proxy", base_path="api"),
        MountSettings(name="auth", prefix="/proxy/auth", base_path="api/v1/platform/auth"),
        MountSettings(
            name="inventory",
            prefix="/proxy/merchant/inventory",
            base_path="api/v1/merchant/inventory",
        ),
    ]


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    headers: HeaderSettings = Field(default_factory=HeaderSettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    mounts: list[MountSettings] = Field(default_factory=_default_mounts)

    def mount_configs(self) -> list[MountConfig]:
        """Mounts ordered longest prefix first, so narrower routes match before broader ones."""
        mounts = [m.to_mount() for m in self.mounts]
        return sorted(mounts, key=lambda m: len(m.prefix), reverse=True)


def normalize_base_url(url: str) -> str:
    """Strip trailing slashes and a trailing /api suffix from an upstream URL."""
    url = url.strip().rstrip("/")
    if url.endswith("/api"):
        url = url[: -len("/api")]
    return url


def apply_env_overrides(config: Config) -> Config:
    """Apply environment overrides on top of the file configuration."""
    api_url = os.environ.get(API_URL_ENV)
    if api_url:
        config.upstream.base_url = api_url
    config.upstream.base_url = normalize_base_url(config.upstream.base_url)
    return config


def load_config() -> Config:
    """Load configuration from JSON file, creating default if needed."""
    if not CONFIG_FILE.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        default = Config()
        CONFIG_FILE.write_text(default.model_dump_json(indent=2))
        return apply_env_overrides(default)

    try:
        data = json.loads(CONFIG_FILE.read_text())
        return apply_env_overrides(Config.model_validate(data))
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = CONFIG_FILE.with_suffix(".json.bak")
        CONFIG_FILE.rename(backup)
        default = Config()
        CONFIG_FILE.write_text(default.model_dump_json(indent=2))
        return apply_env_overrides(default)
