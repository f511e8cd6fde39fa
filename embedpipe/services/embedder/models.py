# =============================================================================
# File: models.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

"""Data models and constants for the embedding pipeline."""

from typing import List

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# Constants
# ============================================================================

DEFAULT_CHUNK_OVERLAP = 8
DEFAULT_LONG_DOCUMENT_MAX_TOKENS = 8192


# ============================================================================
# Result Models
# ============================================================================


class EmbeddingResult(BaseModel):
    """Pooled vectors for one embed call plus per-input bookkeeping."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    vectors: np.ndarray
    contributions: List[int] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    prefix: str = ""
    dimensionality: int
