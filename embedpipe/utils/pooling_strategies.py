# =============================================================================
# File: pooling_strategies.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

from typing import Optional

import numpy as np

from embedpipe.exceptions import InvalidConfigError
from embedpipe.logger import get_logger
from embedpipe.utils.constants import MASK_NEG_INF, MASK_SUM_EPS

logger = get_logger("embedpipe.pooling_strategies")

SUPPORTED_STRATEGIES = ("mean", "max", "cls", "first", "last", "none")


class PoolingStrategies:
    """Pooling of one sequence's token states into a single sequence vector."""

    @staticmethod
    def mean_pooling(hidden: np.ndarray, attention_mask: np.ndarray) -> np.ndarray:
        """Mean pooling with attention mask."""
        assert (
            hidden.shape[0] == attention_mask.shape[0]
        ), "Hidden states and attention mask length mismatch"
        masked = hidden * attention_mask[:, None]
        return masked.sum(axis=0) / max(attention_mask.sum(), MASK_SUM_EPS)

    @staticmethod
    def max_pooling(hidden: np.ndarray, attention_mask: np.ndarray) -> np.ndarray:
        """Max pooling with attention mask."""
        assert (
            hidden.shape[0] == attention_mask.shape[0]
        ), "Hidden states and attention mask length mismatch"
        masked = np.where(attention_mask[:, None].astype(bool), hidden, MASK_NEG_INF)
        return masked.max(axis=0)

    @staticmethod
    def apply(
        hidden: np.ndarray,
        strategy: str = "mean",
        attention_mask: Optional[np.ndarray] = None,
    ) -> Optional[np.ndarray]:
        """Pool (seq_len, dim) token states; "none" returns None (no sequence vector)."""
        logger.debug(f"Applying pooling strategy: {strategy}")

        if strategy not in SUPPORTED_STRATEGIES:
            raise InvalidConfigError(f"Unsupported pooling strategy: {strategy}")

        if hidden.ndim == 1:
            return hidden

        if attention_mask is None:
            attention_mask = np.ones(hidden.shape[0], dtype=np.int64)

        if strategy == "none":
            return None
        if strategy in ("cls", "first"):
            return hidden[0]
        if strategy == "last":
            return hidden[max(int(attention_mask.sum()) - 1, 0)]
        if strategy == "max":
            return PoolingStrategies.max_pooling(hidden, attention_mask)
        return PoolingStrategies.mean_pooling(hidden, attention_mask)
