# =============================================================================
# File: test_batching.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

import pytest

from embedpipe.exceptions import EncodeFailureError, InvalidInputError
from embedpipe.models.chunk import Chunk
from embedpipe.services.embedder.batching import BatchScheduler, TokenBatch


class TestTokenBatch:
    def test_capacity_must_be_positive(self):
        with pytest.raises(InvalidInputError):
            TokenBatch(0)

    def test_add_sequence_layout(self):
        batch = TokenBatch(10)
        assert batch.add_sequence([1, 5, 2], source_index=3) == 0
        assert batch.add_sequence([1, 6, 7, 2], source_index=4) == 1

        assert batch.n_tokens == 7
        assert batch.n_slots == 2
        assert batch.positions == [0, 1, 2, 0, 1, 2, 3]
        assert batch.slots == [0, 0, 0, 1, 1, 1, 1]
        assert batch.wants_output == [False, False, True, False, False, False, True]
        assert batch.output_indices() == [2, 6]
        assert batch.sequence(1) == [1, 6, 7, 2]
        assert batch.slot_sources == [3, 4]

    def test_fits_and_reset(self):
        batch = TokenBatch(5)
        batch.add_sequence([1, 2, 3], 0)
        assert batch.fits(2)
        assert not batch.fits(3)
        batch.reset()
        assert batch.n_tokens == 0
        assert batch.n_slots == 0


class TestBatchScheduler:
    def _scheduler(self, encoder, capacity=10):
        decoded = []

        def on_decoded(batch):
            decoded.append([batch.sequence(s) for s in range(batch.n_slots)])

        return BatchScheduler(encoder, capacity, 2, on_decoded), decoded

    def test_submits_when_next_chunk_overflows(self, make_encoder):
        encoder = make_encoder()
        scheduler, decoded = self._scheduler(encoder)
        for i in range(3):
            scheduler.offer(Chunk(source_index=i, tokens=(1, 10 + i, 20 + i, 30 + i)))
        assert scheduler.submissions == 1
        scheduler.flush()

        assert scheduler.submissions == 2
        assert decoded == [
            [[1, 10, 20, 30, 2], [1, 11, 21, 31, 2]],
            [[1, 12, 22, 32, 2]],
        ]
        assert [s["sources"] for s in encoder.submitted] == [[0, 1], [2]]

    def test_terminator_is_appended_to_every_sequence(self, make_encoder):
        encoder = make_encoder()
        scheduler, _ = self._scheduler(encoder)
        scheduler.offer(Chunk(source_index=0, tokens=(1, 9)))
        scheduler.flush()
        assert encoder.submitted[0]["sequences"] == [[1, 9, 2]]
        assert encoder.submitted[0]["outputs"] == [2]

    def test_flush_on_empty_batch_is_noop(self, make_encoder):
        encoder = make_encoder()
        scheduler, decoded = self._scheduler(encoder)
        scheduler.flush()
        assert scheduler.submissions == 0
        assert encoder.submitted == []
        assert decoded == []

    def test_oversized_chunk_is_rejected(self, make_encoder):
        scheduler, _ = self._scheduler(make_encoder())
        with pytest.raises(InvalidInputError):
            scheduler.offer(Chunk(source_index=0, tokens=tuple(range(3, 13))))

    def test_encoder_failure_aborts(self, make_encoder):
        scheduler, decoded = self._scheduler(make_encoder(fail_on_batch=0))
        scheduler.offer(Chunk(source_index=0, tokens=(1, 5)))
        with pytest.raises(EncodeFailureError) as exc:
            scheduler.flush()
        assert "batch 0" in exc.value.message
        assert decoded == []
