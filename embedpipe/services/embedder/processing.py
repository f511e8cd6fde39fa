# =============================================================================
# File: processing.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

"""Chunk vector normalization and mean pooling across chunks."""

import logging
from typing import Any, List, Optional

import numpy as np
from numpy import ndarray

from embedpipe.exceptions import InferenceError
from embedpipe.logger import get_logger
from embedpipe.services.embedder.batching import TokenBatch
from embedpipe.services.embedder.profiles import EmbeddingProfile
from embedpipe.utils.constants import LAYER_NORM_EPS, NORM_EPS

logger = get_logger("embedpipe.processing")


def l2_normalize(embedding: ndarray) -> ndarray:
    """Scale to unit length; near-zero vectors are divided by NORM_EPS instead."""
    norm = np.sqrt(np.dot(embedding, embedding))
    return embedding * (1.0 / max(norm, NORM_EPS))


def renormalize_nested(embedding: ndarray, dimensionality: int) -> ndarray:
    """Layer-normalize a nested (matryoshka) embedding and truncate it.

    Mean and unbiased variance (Bessel's correction) come from the full
    native vector; only then is it cut to ``dimensionality`` and rescaled.

    Args:
        embedding: Raw native-width vector
        dimensionality: Number of leading components to keep

    Returns:
        Truncated, variance-normalized vector (float64)
    """
    centered = np.asarray(embedding, dtype=np.float64)
    centered = centered - centered.mean()
    variance = np.dot(centered, centered) / (centered.shape[0] - 1)
    return centered[:dimensionality] * (1.0 / np.sqrt(variance + LAYER_NORM_EPS))


def process_chunk_vector(
    raw: ndarray, profile: Optional[EmbeddingProfile], dimensionality: int
) -> ndarray:
    """Turn one raw encoder vector into a unit-length chunk embedding."""
    if profile is not None and profile.nested_capable:
        embedding = renormalize_nested(raw, dimensionality)
    else:
        embedding = np.asarray(raw, dtype=np.float64)[:dimensionality]
    return l2_normalize(embedding)


class EmbeddingAccumulator:
    """Arena of per-input running sums, one owned row per input index."""

    def __init__(self, n_inputs: int, dimensionality: int):
        self.dimensionality = dimensionality
        self.sums = np.zeros((n_inputs, dimensionality), dtype=np.float64)
        self.contributions = np.zeros(n_inputs, dtype=np.int64)

    def add(self, source_index: int, embedding: ndarray) -> None:
        if embedding.shape != (self.dimensionality,):
            raise InferenceError(
                f"Chunk vector shape {embedding.shape} does not match ({self.dimensionality},)"
            )
        self.sums[source_index] += embedding
        self.contributions[source_index] += 1

    def finalize(self, out: Optional[ndarray] = None) -> ndarray:
        """Mean-pool each row over its chunks, L2-normalize, write rows in input order."""
        if out is None:
            out = np.empty(self.sums.shape, dtype=np.float32)
        missing = np.flatnonzero(self.contributions == 0)
        if missing.size:
            raise InferenceError(f"No chunk vectors were produced for inputs {missing.tolist()}")

        for index in range(self.sums.shape[0]):
            pooled = self.sums[index] * (1.0 / self.contributions[index])
            out[index] = l2_normalize(pooled)
        return out

    def contribution_counts(self) -> List[int]:
        return self.contributions.tolist()


def collect_batch_outputs(
    encoder: Any,
    batch: TokenBatch,
    accumulator: EmbeddingAccumulator,
    profile: Optional[EmbeddingProfile],
    dimensionality: int,
) -> None:
    """Fetch the vector of every output position of a decoded batch into the arena."""
    for index in batch.output_indices():
        slot = batch.slots[index]
        source_index = batch.slot_sources[slot]

        # Per-sequence pooling may be unavailable; fall back to the token's own vector
        raw = encoder.sequence_vector(slot)
        if raw is None:
            raw = encoder.position_vector(index)
        if raw is None:
            raise InferenceError(f"Encoder returned no vector for batch position {index}")

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Slot %d -> input %d, raw shape %s", slot, source_index, np.shape(raw))
        accumulator.add(source_index, process_chunk_vector(raw, profile, dimensionality))
