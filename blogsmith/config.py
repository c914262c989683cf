"""Runtime settings — config.yaml merged over defaults, credentials from the environment."""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass, field

import yaml
from dotenv import load_dotenv

log = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

DEFAULTS = {
    "llm": {
        "provider": "openrouter",
        "base_url": OPENROUTER_BASE_URL,
        "temperature": 0.7,
        "max_tokens": 4000,
        "timeout_seconds": 60,
        "models": {
            "fast": "anthropic/claude-3-haiku:beta",
            "quality": "anthropic/claude-3.5-sonnet:beta",
        },
        # Used when provider is "anthropic" (native model ids, no router prefix)
        "anthropic_models": {
            "fast": "claude-3-haiku-20240307",
            "quality": "claude-3-5-sonnet-20241022",
        },
    },
    "images": {
        "model": "stabilityai/stable-diffusion-xl",
        "default_size": "1024x1024",
        "timeout_seconds": 60,
        "output_dir": "output/images",
    },
    "storage": {
        "blogs_path": "data/blogs.yaml",
    },
    "app": {
        "title": "AI Blog Generator",
        "referer": "http://localhost:5173",
    },
}


class ConfigError(Exception):
    """Raised when a required setting (usually a credential) is missing."""


@dataclass
class LLMSettings:
    provider: str = "openrouter"
    api_key: str = ""
    base_url: str = OPENROUTER_BASE_URL
    fast_model: str = "anthropic/claude-3-haiku:beta"
    quality_model: str = "anthropic/claude-3.5-sonnet:beta"
    temperature: float = 0.7
    max_tokens: int = 4000
    timeout_seconds: float = 60


@dataclass
class ImageSettings:
    api_key: str = ""
    base_url: str = OPENROUTER_BASE_URL
    model: str = "stabilityai/stable-diffusion-xl"
    default_size: str = "1024x1024"
    timeout_seconds: float = 60
    output_dir: str = "output/images"


@dataclass
class Settings:
    llm: LLMSettings = field(default_factory=LLMSettings)
    images: ImageSettings = field(default_factory=ImageSettings)
    blogs_path: str = "data/blogs.yaml"
    app_title: str = "AI Blog Generator"
    referer: str = "http://localhost:5173"

    def require_llm_key(self) -> str:
        if not self.llm.api_key:
            env_name = "ANTHROPIC_API_KEY" if self.llm.provider == "anthropic" else "OPENROUTER_API_KEY"
            raise ConfigError(f"{env_name} environment variable is not set")
        return self.llm.api_key


def _deep_merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_yaml(path: str) -> dict:
    if path and os.path.exists(path):
        with open(path) as f:
            return yaml.safe_load(f) or {}
    return {}


def load_settings(config_path="config.yaml", env: dict | None = None) -> Settings:
    """Build the process-wide Settings object.

    Values come from the built-in defaults, then ``config.yaml``, then the
    environment (``.env`` is loaded first). Pass ``env`` to bypass
    ``os.environ``, which tests use to stay hermetic.
    """
    if env is None:
        load_dotenv(override=True)
        env = os.environ

    raw = _deep_merge(DEFAULTS, _load_yaml(config_path))
    llm_cfg = raw["llm"]
    img_cfg = raw["images"]

    provider = env.get("LLM_PROVIDER", llm_cfg.get("provider", "openrouter")).lower()
    if provider == "anthropic":
        llm_key = env.get("ANTHROPIC_API_KEY", "")
        models = llm_cfg["anthropic_models"]
    else:
        llm_key = env.get("OPENROUTER_API_KEY", "")
        models = llm_cfg["models"]

    data_dir = env.get("BLOGSMITH_DATA_DIR", "")
    blogs_path = raw["storage"]["blogs_path"]
    if data_dir:
        blogs_path = os.path.join(data_dir, os.path.basename(blogs_path))

    settings = Settings(
        llm=LLMSettings(
            provider=provider,
            api_key=llm_key,
            base_url=llm_cfg.get("base_url", OPENROUTER_BASE_URL).rstrip("/"),
            fast_model=models["fast"],
            quality_model=models["quality"],
            temperature=float(llm_cfg["temperature"]),
            max_tokens=int(llm_cfg["max_tokens"]),
            timeout_seconds=float(llm_cfg["timeout_seconds"]),
        ),
        images=ImageSettings(
            api_key=env.get("OPENROUTER_API_KEY", ""),
            base_url=llm_cfg.get("base_url", OPENROUTER_BASE_URL).rstrip("/"),
            model=img_cfg["model"],
            default_size=img_cfg["default_size"],
            timeout_seconds=float(img_cfg["timeout_seconds"]),
            output_dir=img_cfg["output_dir"],
        ),
        blogs_path=blogs_path,
        app_title=raw["app"]["title"],
        referer=env.get("FRONTEND_URL", raw["app"]["referer"]),
    )
    log.info(f"Settings loaded (provider={settings.llm.provider}, store={settings.blogs_path})")
    return settings
