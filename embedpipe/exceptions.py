# =============================================================================
# File: exceptions.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

"""Custom exceptions for the embedpipe embedding pipeline."""
from typing import Optional


class EmbedPipeBaseException(Exception):
    """Base exception for all embedpipe errors."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        super().__init__(self.message)


class ModelException(EmbedPipeBaseException):
    """Exceptions related to model loading and inference."""

    pass


class ModelNotFoundError(ModelException):
    """Model file or configuration not found."""

    pass


class ModelLoadError(ModelException):
    """Failed to load model or create session."""

    pass


class NotEmbeddingModelError(ModelException):
    """The loaded model does not produce embeddings."""

    pass


class TokenizerError(ModelException):
    """Tokenizer-related errors."""

    pass


class InferenceError(ModelException):
    """Model inference failed."""

    pass


class EncodeFailureError(InferenceError):
    """The encoder rejected a batch submission; the whole embed call is aborted."""

    pass


class ConfigurationException(EmbedPipeBaseException):
    """Configuration-related errors."""

    pass


class InvalidConfigError(ConfigurationException):
    """Invalid configuration parameters."""

    pass


class MissingConfigError(ConfigurationException):
    """Required configuration missing."""

    pass


class ChunkConfigurationError(ConfigurationException):
    """Chunk overlap does not fit within the available token window."""

    pass


class ValidationException(EmbedPipeBaseException):
    """Input validation errors."""

    pass


class InvalidInputError(ValidationException):
    """Invalid input parameters."""

    pass


class InvalidTaskPrefixError(ValidationException):
    """Caller-supplied task prefix is not recognized by the model."""

    pass


class UnsupportedDimensionalityError(ValidationException):
    """Requested output dimensionality is not valid for the model."""

    pass


class InputTooLongError(ValidationException):
    """Input exceeds the long-document token ceiling while averaging is requested."""

    pass


class CacheException(EmbedPipeBaseException):
    """Cache-related errors."""

    pass


class CacheInvalidationError(CacheException):
    """Failed to invalidate cache."""

    pass
