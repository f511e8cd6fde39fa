# =============================================================================
# File: embedding_response.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

from typing import List, Optional

from pydantic import BaseModel, Field


class EmbeddingResponse(BaseModel):
    """
    Response model for text embedding.
    """

    success: bool = Field(True, description="Whether the embed call completed.")
    message: str = Field("", description="Status or error message.")
    error_code: Optional[str] = Field(None, description="Exception class name on failure.")
    model: str = Field(..., description="Model used for the embeddings.")
    dimensionality: Optional[int] = Field(None, description="Width of every returned vector.")
    results: List[List[float]] = Field(
        default_factory=list, description="One unit-length vector per input, in input order."
    )
    warnings: List[str] = Field(default_factory=list)
    time_taken: float = Field(0.0, description="Seconds spent in the call.")
