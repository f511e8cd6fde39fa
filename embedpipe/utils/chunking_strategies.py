# =============================================================================
# File: chunking_strategies.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

from typing import Callable, List, Optional, Sequence

from embedpipe.exceptions import ChunkConfigurationError, InputTooLongError, TokenizerError
from embedpipe.logger import get_logger
from embedpipe.models.chunk import Chunk
from embedpipe.utils.constants import EMPTY_PLACEHOLDER

logger = get_logger("embedpipe.chunking_strategies")

Tokenize = Callable[[str, bool], List[int]]


class ChunkingStrategies:
    """Token-level input preparation and overlapping window splitting."""

    @staticmethod
    def tokenize_prefix(prefix: str, tokenize: Tokenize, bos_token: int) -> List[int]:
        """Tokenize the task prefix; an empty prefix is just the BOS token."""
        if not prefix:
            return [bos_token]
        return list(tokenize(prefix + ":", True))

    @staticmethod
    def tokenize_inputs(
        texts: Sequence[str],
        tokenize: Tokenize,
        long_document: bool = False,
        mean_across_chunks: bool = True,
        max_length: int = 8192,
        warnings: Optional[List[str]] = None,
    ) -> List[List[int]]:
        """Tokenize every input, enforcing the long-document ceiling.

        Texts that tokenize to nothing are replaced by the tokens of
        EMPTY_PLACEHOLDER so each input yields at least one chunk.

        Args:
            texts: Raw input texts
            tokenize: Encoder tokenizer, called as tokenize(text, want_bos)
            long_document: Apply the max_length ceiling
            mean_across_chunks: Whether the caller averages over multiple chunks
            max_length: Token ceiling used in long-document mode
            warnings: Collected diagnostics for the current call

        Returns:
            One token list per input, in input order
        """
        inputs: List[List[int]] = []
        for index, text in enumerate(texts):
            try:
                tokens = list(tokenize(text, False))
            except (TypeError, ValueError) as e:
                raise TokenizerError(f"Failed to tokenize text at index {index}: {e}")

            if long_document and len(tokens) > max_length:
                if mean_across_chunks:
                    raise InputTooLongError(
                        f"length of text at index {index} is {len(tokens)} tokens "
                        f"which exceeds limit of {max_length}"
                    )
                tokens = tokens[:max_length]
            elif not tokens:
                if not long_document or text:
                    message = f"chunking tokenized text at index {index} into zero tokens"
                    logger.warning(message)
                    if warnings is not None:
                        warnings.append(message)
                tokens = list(tokenize(EMPTY_PLACEHOLDER, False))
            inputs.append(tokens)
        return inputs

    @staticmethod
    def max_chunk_length(
        batch_capacity: int, prefix_length: int, has_trailing_terminator: bool
    ) -> int:
        return batch_capacity - (prefix_length + (1 if has_trailing_terminator else 0))

    @staticmethod
    def split_token_windows(
        tokens: Sequence[int],
        prefix_tokens: Sequence[int],
        has_trailing_terminator: bool,
        batch_capacity: int,
        overlap: int,
        allow_multiple_chunks: bool = True,
        source_index: int = 0,
    ) -> List[Chunk]:
        """Split one tokenized input into overlapping windows.

        Window k starts at k * (max_len - overlap), so consecutive windows
        share exactly ``overlap`` tokens. Splitting stops at the first window
        that reaches the end of ``tokens``.
        """
        if overlap < 0:
            raise ChunkConfigurationError(f"chunk overlap must be non-negative, got {overlap}")
        max_len = ChunkingStrategies.max_chunk_length(
            batch_capacity, len(prefix_tokens), has_trailing_terminator
        )
        if overlap >= max_len:
            raise ChunkConfigurationError(
                f"max chunk length of {max_len} is smaller than overlap of {overlap} tokens"
            )

        prefix = tuple(prefix_tokens)
        stride = max_len - overlap
        chunks: List[Chunk] = []
        start = 0
        while True:
            end = min(start + max_len, len(tokens))
            chunks.append(Chunk(source_index=source_index, tokens=prefix + tuple(tokens[start:end])))
            if not allow_multiple_chunks or end >= len(tokens):
                break
            start += stride

        logger.debug(f"Split input {source_index} into {len(chunks)} chunks.")
        return chunks
