# =============================================================================
# File: embedding_request.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

from typing import List, Optional

from pydantic import BaseModel, Field


class EmbeddingRequest(BaseModel):
    model: str = Field(..., description="Name of the embedding model to use.")
    inputs: List[str] = Field(..., description="Texts to embed, one output row per text.")
    is_retrieval: bool = Field(
        False,
        description="Embed as search queries (query prefix) instead of documents.",
    )
    task: Optional[str] = Field(
        None,
        description="Explicit task prefix, e.g. 'clustering'. Must be recognized by the model.",
    )
    dimensionality: Optional[int] = Field(
        None,
        gt=0,
        description="Output width. Omit for the model's native width.",
    )
    mean_across_chunks: bool = Field(
        True,
        description="Average over all chunks of long inputs instead of keeping only the first chunk.",
    )
    long_document: bool = Field(
        False,
        description="Enforce the long-document token ceiling on every input.",
    )
