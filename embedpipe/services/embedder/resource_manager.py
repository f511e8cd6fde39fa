# =============================================================================
# File: resource_manager.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

"""Resource management for tokenizers, ONNX sessions, and encoder configs."""

import os
from typing import Any, Optional

import onnxruntime as ort
from transformers import AutoTokenizer

from embedpipe.config.config_loader import ConfigLoader
from embedpipe.config.encoder_config import EncoderConfig
from embedpipe.exceptions import (
    MissingConfigError,
    ModelLoadError,
    ModelNotFoundError,
    NotEmbeddingModelError,
    TokenizerError,
)
from embedpipe.logger import get_logger
from embedpipe.services.embedder.encoder import OnnxEncoder
from embedpipe.utils.log_sanitizer import sanitize_for_log
from embedpipe.utils.simple_cache import SimpleCache

logger = get_logger("embedpipe.resources")

_encoder_cache: Optional[SimpleCache] = None


def _log_eviction(model: str, encoder: Any) -> None:
    logger.info("Evicted encoder %s from cache", sanitize_for_log(model))


def _get_encoder_cache() -> SimpleCache:
    global _encoder_cache
    if _encoder_cache is None:
        size = ConfigLoader.get_app_settings().embedding.encoder_cache_size
        _encoder_cache = SimpleCache(max_size=size, on_evict=_log_eviction)
    return _encoder_cache


def clear_encoder_cache() -> None:
    if _encoder_cache is not None:
        _encoder_cache.clear()


def get_model_config(model: str) -> EncoderConfig:
    """Load the encoder config for ``model`` and check it can embed."""
    try:
        config = ConfigLoader.get_encoder_config(model)
    except MissingConfigError as e:
        raise ModelNotFoundError(f"Model '{sanitize_for_log(model)}' not found: {e.message}")

    if "embedding" not in config.tasks:
        raise NotEmbeddingModelError(f"not an embedding model: {sanitize_for_log(model)}")

    # Work on a copy so the cached config is never modified
    config = config.model_copy(deep=True)
    if not config.model_name:
        config.model_name = model
    return config


def get_model_path(model: str, model_config: EncoderConfig) -> str:
    """Resolve the model folder under the configured ONNX root."""
    root = ConfigLoader.get_app_settings().onnx.onnx_path
    if not root:
        raise ModelLoadError("ONNX root path is not configured (set EMBEDPIPE_ONNX_ROOT)")
    path = os.path.join(root, model_config.model_folder_name or model)
    if not os.path.isdir(path):
        raise ModelNotFoundError(f"Model folder not found: {sanitize_for_log(path)}")
    return path


def load_tokenizer(model_path: str, model_config: EncoderConfig) -> Any:
    """Load the Hugging Face tokenizer shipped with the model."""
    try:
        if model_config.legacy_tokenizer:
            return AutoTokenizer.from_pretrained(model_path, local_files_only=True, legacy=True)
        return AutoTokenizer.from_pretrained(model_path, local_files_only=True)
    except (OSError, ValueError) as ex:
        if model_config.legacy_tokenizer:
            raise TokenizerError(f"Failed to load tokenizer: {ex}")
        logger.warning(
            "Fallback to legacy tokenizer for %s: %s",
            sanitize_for_log(model_path),
            sanitize_for_log(str(ex)),
        )
    try:
        return AutoTokenizer.from_pretrained(model_path, local_files_only=True, legacy=True)
    except (OSError, ValueError) as ex:
        raise TokenizerError(f"Failed to load tokenizer from {sanitize_for_log(model_path)}: {ex}")


def load_session(model_path: str, model_config: EncoderConfig) -> Any:
    """Create the ONNX Runtime session for the encoder graph."""
    onnx_file = os.path.join(model_path, model_config.encoder_onnx_model)
    if not os.path.isfile(onnx_file):
        raise ModelNotFoundError(f"ONNX model file not found: {sanitize_for_log(onnx_file)}")

    provider = ConfigLoader.get_app_settings().onnx.session_provider
    try:
        session = ort.InferenceSession(onnx_file, providers=[provider])
    except Exception as e:
        raise ModelLoadError(f"Failed to create ONNX session for {onnx_file}: {e}")
    logger.info("Loaded ONNX session %s with provider %s", onnx_file, provider)
    return session


def load_encoder(model: str) -> OnnxEncoder:
    """Return a cached OnnxEncoder for ``model``, loading it on first use."""
    cache = _get_encoder_cache()
    encoder = cache.get(model)
    if encoder is not None:
        return encoder

    model_config = get_model_config(model)
    model_path = get_model_path(model, model_config)
    tokenizer = load_tokenizer(model_path, model_config)
    session = load_session(model_path, model_config)

    encoder = OnnxEncoder(tokenizer, session, model_config)
    cache.put(model, encoder)
    logger.info(f"Encoder cache size: {cache.size()}")
    return encoder
