# =============================================================================
# File: inference.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

"""Core embedding pipeline: tokenize, split, batch, encode, pool."""

import logging
from typing import Any, List, Optional, Sequence

import numpy as np

from embedpipe.logger import get_logger
from embedpipe.services.embedder import processing
from embedpipe.services.embedder.batching import BatchScheduler
from embedpipe.services.embedder.models import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_LONG_DOCUMENT_MAX_TOKENS,
    EmbeddingResult,
)
from embedpipe.services.embedder.profiles import EmbeddingProfile
from embedpipe.utils.chunking_strategies import ChunkingStrategies
from embedpipe.utils.log_sanitizer import preview_texts

logger = get_logger("embedpipe.inference")


def embed_internal(
    encoder: Any,
    texts: Sequence[str],
    prefix: str,
    dimensionality: int,
    profile: Optional[EmbeddingProfile] = None,
    mean_across_chunks: bool = True,
    long_document: bool = False,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    long_document_max_tokens: int = DEFAULT_LONG_DOCUMENT_MAX_TOKENS,
    out: Optional[np.ndarray] = None,
    warnings: Optional[List[str]] = None,
) -> EmbeddingResult:
    """Embed already-validated texts with a resolved prefix and dimensionality.

    Args:
        encoder: EncoderBackend to tokenize and decode with
        texts: Input texts
        prefix: Resolved task prefix ("" for none)
        dimensionality: Validated output width
        profile: Model profile; nested-capable profiles get layer renormalization
        mean_across_chunks: Average over all chunks instead of keeping only the first
        long_document: Enforce long_document_max_tokens per input
        chunk_overlap: Tokens shared by consecutive chunks of one input
        long_document_max_tokens: Token ceiling for long-document mode
        out: Optional (n, dimensionality) float buffer to write rows into
        warnings: Collected diagnostics for the current call

    Returns:
        EmbeddingResult with one unit-length row per input, in input order
    """
    if warnings is None:
        warnings = []
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Embedding %s with prefix %r", preview_texts(texts), prefix)

    inputs = ChunkingStrategies.tokenize_inputs(
        texts,
        encoder.tokenize,
        long_document=long_document,
        mean_across_chunks=mean_across_chunks,
        max_length=long_document_max_tokens,
        warnings=warnings,
    )
    prefix_tokens = ChunkingStrategies.tokenize_prefix(
        prefix, encoder.tokenize, encoder.bos_token()
    )

    capacity = encoder.max_batch_token_width()
    chunks = []
    for index, tokens in enumerate(inputs):
        chunks.extend(
            ChunkingStrategies.split_token_windows(
                tokens,
                prefix_tokens,
                has_trailing_terminator=True,
                batch_capacity=capacity,
                overlap=chunk_overlap,
                allow_multiple_chunks=mean_across_chunks,
                source_index=index,
            )
        )
    del inputs

    accumulator = processing.EmbeddingAccumulator(len(texts), dimensionality)
    scheduler = BatchScheduler(
        encoder,
        capacity,
        encoder.eos_token(),
        lambda batch: processing.collect_batch_outputs(
            encoder, batch, accumulator, profile, dimensionality
        ),
    )
    for chunk in chunks:
        scheduler.offer(chunk)
    scheduler.flush()

    logger.info(
        "Embedded %d texts as %d chunks in %d batches (dim=%d)",
        len(texts),
        len(chunks),
        scheduler.submissions,
        dimensionality,
    )

    vectors = accumulator.finalize(out)
    return EmbeddingResult(
        vectors=vectors,
        contributions=accumulator.contribution_counts(),
        warnings=warnings,
        prefix=prefix,
        dimensionality=dimensionality,
    )
