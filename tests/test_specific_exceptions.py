# =============================================================================
# File: test_specific_exceptions.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

"""Tests for the exception hierarchy and where each error is raised."""

import pytest

from embedpipe.exceptions import (
    CacheException,
    CacheInvalidationError,
    ChunkConfigurationError,
    ConfigurationException,
    EmbedPipeBaseException,
    EncodeFailureError,
    InferenceError,
    InputTooLongError,
    InvalidInputError,
    InvalidTaskPrefixError,
    ModelException,
    ModelNotFoundError,
    NotEmbeddingModelError,
    UnsupportedDimensionalityError,
    ValidationException,
)


class TestExceptionHierarchy:
    @pytest.mark.parametrize(
        "exc_class,parent",
        [
            (ModelNotFoundError, ModelException),
            (NotEmbeddingModelError, ModelException),
            (EncodeFailureError, InferenceError),
            (InferenceError, ModelException),
            (ChunkConfigurationError, ConfigurationException),
            (InvalidInputError, ValidationException),
            (InvalidTaskPrefixError, ValidationException),
            (UnsupportedDimensionalityError, ValidationException),
            (InputTooLongError, ValidationException),
            (CacheInvalidationError, CacheException),
        ],
    )
    def test_parents(self, exc_class, parent):
        assert issubclass(exc_class, parent)
        assert issubclass(exc_class, EmbedPipeBaseException)

    def test_error_code_defaults_to_class_name(self):
        error = InputTooLongError("too long")
        assert error.message == "too long"
        assert error.error_code == "InputTooLongError"
        assert str(error) == "too long"

    def test_explicit_error_code(self):
        assert EncodeFailureError("x", error_code="E_DECODE").error_code == "E_DECODE"


class TestRaisedAtTheRightSeam:
    """Validation errors are raised before anything reaches the encoder."""

    def test_bad_dimensionality_never_reaches_encoder(self, fake_encoder):
        from embedpipe.services.embedder import TextEmbedder

        with pytest.raises(ValidationException):
            TextEmbedder(fake_encoder).embed(["text"], dimensionality=3)
        assert fake_encoder.submitted == []

    def test_bad_task_never_reaches_encoder(self, make_encoder):
        from embedpipe.services.embedder import TextEmbedder

        encoder = make_encoder(model_name="nomic-embed-text-v1")
        with pytest.raises(ValidationException):
            TextEmbedder(encoder).embed(["text"], task="nonsense")
        assert encoder.submitted == []
