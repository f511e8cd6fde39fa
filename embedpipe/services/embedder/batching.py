# =============================================================================
# File: batching.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

"""Packing of chunks into fixed-capacity encoder batches."""

from typing import Any, Callable, List

from embedpipe.exceptions import EncodeFailureError, InvalidInputError
from embedpipe.logger import get_logger
from embedpipe.models.chunk import Chunk

logger = get_logger("embedpipe.batching")


class TokenBatch:
    """Flat token batch: one entry per token, grouped into sequence slots.

    Mirrors the layout encoder runtimes consume: parallel lists of token id,
    position within its sequence, sequence slot and an output flag.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise InvalidInputError(f"Batch capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.tokens: List[int] = []
        self.positions: List[int] = []
        self.slots: List[int] = []
        self.wants_output: List[bool] = []
        self.slot_sources: List[int] = []

    @property
    def n_tokens(self) -> int:
        return len(self.tokens)

    @property
    def n_slots(self) -> int:
        return len(self.slot_sources)

    def fits(self, n_tokens: int) -> bool:
        return self.n_tokens + n_tokens <= self.capacity

    def add_sequence(self, tokens: List[int], source_index: int) -> int:
        """Append one sequence under the next free slot; only its last token requests output."""
        slot = self.n_slots
        last = len(tokens) - 1
        for position, token in enumerate(tokens):
            self.tokens.append(token)
            self.positions.append(position)
            self.slots.append(slot)
            self.wants_output.append(position == last)
        self.slot_sources.append(source_index)
        return slot

    def sequence(self, slot: int) -> List[int]:
        return [t for t, s in zip(self.tokens, self.slots) if s == slot]

    def output_indices(self) -> List[int]:
        return [i for i, wanted in enumerate(self.wants_output) if wanted]

    def reset(self) -> None:
        self.tokens.clear()
        self.positions.clear()
        self.slots.clear()
        self.wants_output.clear()
        self.slot_sources.clear()


class BatchScheduler:
    """Offers chunks to one open batch, submitting it whenever the next chunk would overflow.

    ``on_decoded`` is called with the batch after every successful submission,
    before the batch is reset.
    """

    def __init__(
        self,
        encoder: Any,
        capacity: int,
        eos_token: int,
        on_decoded: Callable[[TokenBatch], None],
    ):
        self._encoder = encoder
        self._eos_token = eos_token
        self._on_decoded = on_decoded
        self.batch = TokenBatch(capacity)
        self.submissions = 0

    def offer(self, chunk: Chunk) -> None:
        sequence = list(chunk.tokens)
        sequence.append(self._eos_token)
        if len(sequence) > self.batch.capacity:
            raise InvalidInputError(
                f"Chunk of {len(sequence)} tokens exceeds batch capacity {self.batch.capacity}"
            )

        if not self.batch.fits(len(sequence)):
            self._submit()

        self.batch.add_sequence(sequence, chunk.source_index)

    def flush(self) -> None:
        if self.batch.n_tokens:
            self._submit()

    def _submit(self) -> None:
        logger.debug(
            "Submitting batch of %d tokens in %d sequences",
            self.batch.n_tokens,
            self.batch.n_slots,
        )
        if not self._encoder.submit_batch(self.batch):
            logger.error("Encoder failed to decode batch %d", self.submissions)
            raise EncodeFailureError(f"encoder failed to decode batch {self.submissions}")
        self.submissions += 1
        self._on_decoded(self.batch)
        self.batch.reset()
