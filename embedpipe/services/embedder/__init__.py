# =============================================================================
# File: __init__.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

"""Embedding pipeline turning texts into L2-normalized vectors.

This package provides a modular embedder with the following components:
- profiles: Static registry of known models and their task prefixes
- prefix: Task prefix and output dimensionality resolution
- batching: Fixed-capacity token batches and the batch scheduler
- processing: Nested renormalization, L2 normalization, mean pooling arena
- encoder: EncoderBackend protocol and the ONNX Runtime adapter
- resource_manager: Encoder loading (tokenizers, sessions, configs)
- inference: The sequential embed pipeline
- embedder: Main TextEmbedder class

Public API:
- TextEmbedder: Main class for text embedding
- EmbeddingResult: Vectors plus per-input chunk counts and diagnostics
- EncoderBackend, OnnxEncoder: Encoder runtimes
"""

from embedpipe.services.embedder.embedder import TextEmbedder
from embedpipe.services.embedder.encoder import EncoderBackend, OnnxEncoder
from embedpipe.services.embedder.models import EmbeddingResult
from embedpipe.services.embedder.profiles import EmbeddingProfile, get_embedding_profile

__all__ = [
    "TextEmbedder",
    "EmbeddingResult",
    "EncoderBackend",
    "OnnxEncoder",
    "EmbeddingProfile",
    "get_embedding_profile",
]
