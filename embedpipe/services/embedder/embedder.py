# =============================================================================
# File: embedder.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

"""Main TextEmbedder class with the public embedding API."""

import threading
import time
import weakref
from typing import Any, Optional, Sequence

import numpy as np

from embedpipe.config.config_loader import ConfigLoader
from embedpipe.exceptions import (
    ChunkConfigurationError,
    EmbedPipeBaseException,
    InvalidInputError,
)
from embedpipe.logger import get_logger
from embedpipe.models.embedding_request import EmbeddingRequest
from embedpipe.models.embedding_response import EmbeddingResponse
from embedpipe.services.embedder import inference, resource_manager
from embedpipe.services.embedder.models import EmbeddingResult
from embedpipe.services.embedder.prefix import resolve_dimensionality, resolve_prefix
from embedpipe.services.embedder.profiles import get_embedding_profile
from embedpipe.utils.log_sanitizer import sanitize_for_log

logger = get_logger("embedpipe.embedder")

# One lock per encoder instance: the encoder keeps per-batch state between
# submit_batch and the vector lookups, so calls against it must not interleave.
_encoder_locks: "weakref.WeakKeyDictionary[Any, threading.Lock]" = weakref.WeakKeyDictionary()
_encoder_locks_guard = threading.Lock()


def _lock_for(encoder: Any) -> threading.Lock:
    with _encoder_locks_guard:
        lock = _encoder_locks.get(encoder)
        if lock is None:
            lock = threading.Lock()
            _encoder_locks[encoder] = lock
        return lock


class TextEmbedder:
    """Embeds lists of texts into unit-length vectors with one encoder backend."""

    def __init__(
        self,
        encoder: Any,
        chunk_overlap: Optional[int] = None,
        long_document_max_tokens: Optional[int] = None,
    ):
        settings = ConfigLoader.get_app_settings().embedding
        self.encoder = encoder
        self.model_name = getattr(encoder, "model_name", None)
        self.profile = get_embedding_profile(self.model_name)
        self.chunk_overlap = (
            chunk_overlap if chunk_overlap is not None else settings.chunk_overlap
        )
        self.long_document_max_tokens = (
            long_document_max_tokens
            if long_document_max_tokens is not None
            else settings.long_document_max_tokens
        )
        if self.chunk_overlap < 0:
            raise ChunkConfigurationError(
                f"chunk overlap must be non-negative, got {self.chunk_overlap}"
            )
        if self.profile is None:
            logger.warning(f"unknown model {sanitize_for_log(self.model_name)}")

    @classmethod
    def from_model(cls, model: str, **kwargs: Any) -> "TextEmbedder":
        return cls(resource_manager.load_encoder(model), **kwargs)

    def embed(
        self,
        texts: Sequence[str],
        out: Optional[np.ndarray] = None,
        is_retrieval: bool = False,
        dimensionality: Optional[int] = None,
        mean_across_chunks: bool = True,
        long_document: bool = False,
        task: Optional[str] = None,
    ) -> np.ndarray:
        """Embed ``texts`` and return one unit-length row per text.

        Args:
            texts: Input texts
            out: Optional float buffer of len(texts) * dimensionality elements
                (flat or 2-D); rows are written into it in input order
            is_retrieval: Embed as queries rather than documents
            dimensionality: Output width, None for native width
            mean_across_chunks: Average over all chunks of long inputs
            long_document: Enforce the long-document token ceiling
            task: Explicit task prefix recognized by the model

        Returns:
            Array of shape (len(texts), dimensionality); a view of ``out`` when given
        """
        return self.embed_with_details(
            texts,
            out=out,
            is_retrieval=is_retrieval,
            dimensionality=dimensionality,
            mean_across_chunks=mean_across_chunks,
            long_document=long_document,
            task=task,
        ).vectors

    def embed_with_details(
        self,
        texts: Sequence[str],
        out: Optional[np.ndarray] = None,
        is_retrieval: bool = False,
        dimensionality: Optional[int] = None,
        mean_across_chunks: bool = True,
        long_document: bool = False,
        task: Optional[str] = None,
    ) -> EmbeddingResult:
        """Same as ``embed`` but returns per-input chunk counts and diagnostics too."""
        if isinstance(texts, str):
            raise InvalidInputError("texts must be a sequence of strings, not a single string")

        warnings = []
        # Width detection may decode a batch of its own, so it runs under the
        # same encoder lock as the embedding batches.
        with _lock_for(self.encoder):
            native_width = self.encoder.native_embedding_width()
            dim = resolve_dimensionality(
                self.profile, dimensionality, native_width, self.model_name
            )
            prefix = resolve_prefix(self.profile, is_retrieval, task, self.model_name, warnings)
            rows = self._output_rows(out, len(texts), dim)

            if not texts:
                return EmbeddingResult(
                    vectors=rows if rows is not None else np.empty((0, dim), dtype=np.float32),
                    warnings=warnings,
                    prefix=prefix,
                    dimensionality=dim,
                )

            return inference.embed_internal(
                self.encoder,
                texts,
                prefix,
                dim,
                profile=self.profile,
                mean_across_chunks=mean_across_chunks,
                long_document=long_document,
                chunk_overlap=self.chunk_overlap,
                long_document_max_tokens=self.long_document_max_tokens,
                out=rows,
                warnings=warnings,
            )

    @staticmethod
    def _output_rows(out: Optional[np.ndarray], n_texts: int, dim: int) -> Optional[np.ndarray]:
        """Return a (n_texts, dim) view of the caller's buffer."""
        if out is None:
            return None
        if not isinstance(out, np.ndarray) or not np.issubdtype(out.dtype, np.floating):
            raise InvalidInputError("out must be a floating point numpy array")
        if out.size != n_texts * dim:
            raise InvalidInputError(
                f"out has {out.size} elements, expected {n_texts} x {dim} = {n_texts * dim}"
            )
        rows = out.reshape(n_texts, dim)
        if not np.shares_memory(rows, out) and out.size:
            raise InvalidInputError("out must be contiguous so rows can be written in place")
        return rows

    def embed_text(self, request: EmbeddingRequest) -> EmbeddingResponse:
        """Request/response wrapper around ``embed_with_details``.

        Pipeline errors are reported in the response instead of being raised.
        """
        response = EmbeddingResponse(model=request.model)
        start_time = time.time()

        try:
            result = self.embed_with_details(
                request.inputs,
                is_retrieval=request.is_retrieval,
                dimensionality=request.dimensionality,
                mean_across_chunks=request.mean_across_chunks,
                long_document=request.long_document,
                task=request.task,
            )
            response.results = result.vectors.tolist()
            response.dimensionality = result.dimensionality
            response.warnings = result.warnings
            response.message = "Embedding generated successfully"
        except EmbedPipeBaseException as e:
            logger.error(
                "Embedding failed for %s: %s",
                sanitize_for_log(request.model),
                sanitize_for_log(e.message),
            )
            response.success = False
            response.message = e.message
            response.error_code = e.error_code
        # finalize timing and return outside finally to avoid silencing exceptions (B012)
        response.time_taken = time.time() - start_time
        return response
