# =============================================================================
# File: profiles.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

"""Static registry of known embedding models and their task prefixes."""

from typing import Dict, FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EmbeddingProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    document_prefix: str
    query_prefix: str
    other_prefixes: FrozenSet[str] = Field(default_factory=frozenset)
    nested_capable: bool = False
    recommended_dimensions: Optional[Tuple[int, ...]] = None

    @model_validator(mode="after")
    def _check_dimensions(self) -> "EmbeddingProfile":
        if not self.nested_capable and self.recommended_dimensions is not None:
            raise ValueError("recommended_dimensions requires a nested-capable profile")
        return self

    @property
    def allowed_prefixes(self) -> FrozenSet[str]:
        return frozenset({self.document_prefix, self.query_prefix}) | self.other_prefixes


NOPREFIX_PROFILE = EmbeddingProfile(document_prefix="", query_prefix="")
NOMIC_PROFILE = EmbeddingProfile(
    document_prefix="search_document",
    query_prefix="search_query",
    other_prefixes=frozenset({"clustering", "classification"}),
)
NOMIC_1_5_PROFILE = EmbeddingProfile(
    document_prefix="search_document",
    query_prefix="search_query",
    other_prefixes=frozenset({"clustering", "classification"}),
    nested_capable=True,
    recommended_dimensions=(768, 512, 384, 256, 128),
)
E5_PROFILE = EmbeddingProfile(document_prefix="passage", query_prefix="query")
LLM_EMBEDDER_PROFILE = EmbeddingProfile(
    document_prefix="Represent this document for retrieval",
    query_prefix="Represent this query for retrieving relevant documents",
)
BGE_PROFILE = EmbeddingProfile(
    document_prefix="",
    query_prefix="Represent this sentence for searching relevant passages",
)
E5_MISTRAL_PROFILE = EmbeddingProfile(
    document_prefix="",
    query_prefix="Instruct: Given a query, retrieve relevant passages that answer the query\nQuery",
)

_PROFILE_GROUPS: Tuple[Tuple[EmbeddingProfile, Tuple[str, ...]], ...] = (
    (NOPREFIX_PROFILE, ("all-MiniLM-L6-v1", "all-MiniLM-L12-v1", "all-MiniLM-L6-v2", "all-MiniLM-L12-v2")),
    (NOMIC_PROFILE, ("nomic-embed-text-v1", "nomic-embed-text-v1-ablated", "nomic-embed-text-v1-unsupervised")),
    (NOMIC_1_5_PROFILE, ("nomic-embed-text-v1.5",)),
    (LLM_EMBEDDER_PROFILE, ("llm-embedder",)),
    (
        BGE_PROFILE,
        (
            "bge-small-en",
            "bge-base-en",
            "bge-large-en",
            "bge-small-en-v1.5",
            "bge-base-en-v1.5",
            "bge-large-en-v1.5",
        ),
    ),
    (
        E5_PROFILE,
        (
            "e5-small",
            "e5-base",
            "e5-large",
            "e5-small-unsupervised",
            "e5-base-unsupervised",
            "e5-large-unsupervised",
            "e5-small-v2",
            "e5-base-v2",
            "e5-large-v2",
        ),
    ),
    (
        E5_MISTRAL_PROFILE,
        (
            "e5-mistral-7b-instruct",
            "multilingual-e5-small",
            "multilingual-e5-base",
            "multilingual-e5-large",
            "multilingual-e5-large-instruct",
        ),
    ),
)

EMBEDDING_PROFILES: Dict[str, EmbeddingProfile] = {
    name: profile for profile, names in _PROFILE_GROUPS for name in names
}


def get_embedding_profile(model_name: Optional[str]) -> Optional[EmbeddingProfile]:
    """Return the profile registered for ``model_name``, or None if unknown."""
    if not model_name:
        return None
    return EMBEDDING_PROFILES.get(model_name)
