# =============================================================================
# File: config_loader.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

import json
import os
from typing import Any, Dict, Optional

from pydantic import ValidationError

from embedpipe.config.appsettings import AppSettings
from embedpipe.config.encoder_config import EncoderConfig
from embedpipe.exceptions import (
    CacheInvalidationError,
    InvalidConfigError,
    MissingConfigError,
)
from embedpipe.logger import get_logger, set_log_level
from embedpipe.utils.log_sanitizer import sanitize_for_log

logger = get_logger("embedpipe.config_loader")


class ConfigLoader:
    __encoder_config_cache: Optional[Dict[str, EncoderConfig]] = None
    __config_file_mtime: Optional[float] = None
    __appsettings: Optional[AppSettings] = None

    @staticmethod
    def get_app_settings(refresh: bool = False) -> AppSettings:
        """
        Loads AppSettings from appsettings.json and the environment-specific
        override in the same folder, then applies environment variables.
        """
        if ConfigLoader.__appsettings is not None and not refresh:
            return ConfigLoader.__appsettings

        data = ConfigLoader._load_config_data("appsettings.json", True)
        try:
            settings = AppSettings(**data)
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid appsettings: {e}")

        settings.onnx.onnx_path = os.getenv("EMBEDPIPE_ONNX_ROOT", settings.onnx.onnx_path)
        settings.onnx.config_file = os.getenv(
            "EMBEDPIPE_ONNX_CONFIG_FILE", settings.onnx.config_file
        )
        settings.onnx.session_provider = os.getenv(
            "EMBEDPIPE_SESSION_PROVIDER", settings.onnx.session_provider
        )
        settings.logging.level = os.getenv("EMBEDPIPE_LOG_LEVEL", settings.logging.level)

        try:
            settings.embedding.chunk_overlap = int(
                os.getenv("EMBEDPIPE_CHUNK_OVERLAP", settings.embedding.chunk_overlap)
            )
            settings.embedding.long_document_max_tokens = int(
                os.getenv(
                    "EMBEDPIPE_LONG_DOCUMENT_MAX_TOKENS",
                    settings.embedding.long_document_max_tokens,
                )
            )
            settings.embedding.encoder_cache_size = int(
                os.getenv(
                    "EMBEDPIPE_ENCODER_CACHE_SIZE",
                    settings.embedding.encoder_cache_size,
                )
            )
        except ValueError as e:
            raise InvalidConfigError(f"Invalid numeric environment override: {e}")

        if settings.embedding.chunk_overlap < 0:
            raise InvalidConfigError(
                f"chunk_overlap must be non-negative, got {settings.embedding.chunk_overlap}"
            )

        set_log_level(settings.logging.level)
        ConfigLoader.__appsettings = settings
        logger.debug("Loaded AppSettings for %s", settings.app.name)
        return settings

    @staticmethod
    def get_encoder_config(key: str) -> EncoderConfig:
        """
        Loads EncoderConfig with caching and automatic cache invalidation.
        Cache is invalidated when config file is modified.
        """
        config_file_name = ConfigLoader.get_app_settings().onnx.config_file
        if not config_file_name:
            raise MissingConfigError("No encoder config file configured")

        if ConfigLoader._should_refresh_cache(config_file_name):
            ConfigLoader._refresh_encoder_cache(config_file_name)

        if key not in ConfigLoader.__encoder_config_cache:
            raise MissingConfigError(
                f"Model config '{sanitize_for_log(key)}' not found in {config_file_name}"
            )
        return ConfigLoader.__encoder_config_cache[key]

    @staticmethod
    def _resolve_path(config_file_name: str) -> str:
        base_dir = os.path.dirname(os.path.abspath(__file__))
        return os.path.join(base_dir, config_file_name)

    @staticmethod
    def _should_refresh_cache(config_file_name: str) -> bool:
        """Check if cache should be refreshed based on file modification time."""
        if ConfigLoader.__encoder_config_cache is None:
            return True

        try:
            current_mtime = os.path.getmtime(ConfigLoader._resolve_path(config_file_name))
            return ConfigLoader.__config_file_mtime != current_mtime
        except OSError:
            return True

    @staticmethod
    def _refresh_encoder_cache(config_file_name: str):
        """Refresh the encoder configuration cache."""
        try:
            data = ConfigLoader._load_config_data(config_file_name)
            # Filter out documentation/metadata keys that start with underscore
            ConfigLoader.__encoder_config_cache = {
                k: EncoderConfig(**v) for k, v in data.items() if not k.startswith("_")
            }
            ConfigLoader.__config_file_mtime = os.path.getmtime(
                ConfigLoader._resolve_path(config_file_name)
            )
            logger.debug(
                f"Refreshed encoder config cache with {len(ConfigLoader.__encoder_config_cache)} models"
            )
        except OSError as e:
            logger.error(f"Encoder config file not accessible: {e}")
            raise MissingConfigError(f"Cannot access encoder config file: {e}")
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Invalid encoder config format: {e}")
            raise InvalidConfigError(f"Encoder config file format error: {e}")
        except Exception as e:
            logger.error(f"Failed to refresh encoder config cache: {e}")
            raise CacheInvalidationError(f"Cannot refresh config cache: {e}")

    @staticmethod
    def _load_config_data(config_file_name: str, check_env_file: bool = False) -> dict:
        """
        Loads a config file and merges with environment-specific override if present.
        Performs a deep merge for nested config sections.
        """
        config_path = ConfigLoader._resolve_path(config_file_name)

        logger.debug(f"Loading config from {config_file_name}")

        def deep_update(d: Dict[str, Any], u: Dict[str, Any]) -> None:
            for k, v in u.items():
                if isinstance(v, dict) and isinstance(d.get(k), dict):
                    deep_update(d[k], v)
                else:
                    d[k] = v

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if check_env_file:
            env = os.getenv("EMBEDPIPE_ENV", "Production")
            name, ext = os.path.splitext(config_file_name)
            env_file = f"{name}.{env.lower()}{ext}"
            env_path = ConfigLoader._resolve_path(env_file)
            if os.path.exists(env_path):
                logger.debug(f"Loading config from {env_file}")
                try:
                    with open(env_path, "r", encoding="utf-8") as f:
                        env_data = json.load(f)
                except (json.JSONDecodeError, ValueError) as e:
                    logger.error(
                        "Invalid environment config format in %s: %s",
                        sanitize_for_log(env_file),
                        sanitize_for_log(str(e)),
                    )
                    raise InvalidConfigError(f"Environment config format error: {e}")
                deep_update(data, env_data)
            else:
                logger.debug(f"No environment-specific config {env_file}; using base config.")

        return data

    @staticmethod
    def clear_cache():
        """Clear all configuration caches."""
        ConfigLoader.__encoder_config_cache = None
        ConfigLoader.__config_file_mtime = None
        ConfigLoader.__appsettings = None
        logger.info("Configuration cache cleared")

    @staticmethod
    def get_cache_stats() -> Dict[str, Any]:
        """Get cache statistics for monitoring."""
        return {
            "encoder_configs_cached": (
                len(ConfigLoader.__encoder_config_cache)
                if ConfigLoader.__encoder_config_cache
                else 0
            ),
            "cache_file_mtime": ConfigLoader.__config_file_mtime,
            "cache_loaded": ConfigLoader.__encoder_config_cache is not None,
        }
