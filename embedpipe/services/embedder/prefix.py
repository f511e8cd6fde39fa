# =============================================================================
# File: prefix.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

"""Task prefix and output dimensionality resolution."""

from typing import List, Optional

from embedpipe.exceptions import InvalidTaskPrefixError, UnsupportedDimensionalityError
from embedpipe.logger import get_logger
from embedpipe.services.embedder.profiles import EmbeddingProfile
from embedpipe.utils.log_sanitizer import sanitize_for_log

logger = get_logger("embedpipe.prefix")


def resolve_prefix(
    profile: Optional[EmbeddingProfile],
    is_retrieval: bool,
    task: Optional[str] = None,
    model_name: Optional[str] = None,
    warnings: Optional[List[str]] = None,
) -> str:
    """Decide which prefix text is prepended to every input.

    Args:
        profile: Registered profile of the model, None when the model is unknown
        is_retrieval: Use the query prefix instead of the document prefix
        task: Explicit task prefix requested by the caller
        model_name: Model name used in messages
        warnings: Collected diagnostics for the current call

    Returns:
        Prefix text without the trailing colon
    """
    if task is not None:
        if profile is not None and task not in profile.allowed_prefixes:
            raise InvalidTaskPrefixError(
                f'"{task}" is not a valid task type for model {model_name}'
            )
        return task

    if profile is not None:
        return profile.query_prefix if is_retrieval else profile.document_prefix

    message = f"assuming no prefix for unknown model {sanitize_for_log(model_name)}"
    logger.warning(message)
    if warnings is not None:
        warnings.append(message)
    return ""


def resolve_dimensionality(
    profile: Optional[EmbeddingProfile],
    requested: Optional[int],
    native_width: int,
    model_name: Optional[str] = None,
) -> int:
    """Validate the requested output width; None or a negative value means native."""
    if requested is None or requested < 0 or requested == native_width:
        return native_width

    message = f"unsupported dimensionality {requested} for model {model_name}"
    if profile is None or not profile.nested_capable:
        raise UnsupportedDimensionalityError(f"{message} (supported: {native_width})")
    if requested == 0 or requested > native_width:
        recommended = list(profile.recommended_dimensions or ())
        raise UnsupportedDimensionalityError(f"{message} (recommended: {recommended})")
    return requested
