# =============================================================================
# File: conftest.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

import os
import tempfile

# Keep log files out of the working tree; must be set before embedpipe modules
# create their loggers at import time.
os.environ.setdefault("EMBEDPIPE_LOG_PATH", os.path.join(tempfile.gettempdir(), "embedpipe-test-logs"))

import numpy as np
import pytest

from embedpipe.config.config_loader import ConfigLoader
from embedpipe.logger import set_log_level
from embedpipe.services.embedder import resource_manager

BOS = 1
EOS = 2
VOCAB_SIZE = 128


class FakeEncoder:
    """Deterministic in-memory EncoderBackend.

    Every non-space character is one token. A sequence vector is the mean of
    the token rows of a fixed random table, so it depends only on the tokens
    of that sequence, never on how sequences were packed into batches.
    """

    def __init__(
        self,
        model_name="all-MiniLM-L6-v2",
        width=16,
        capacity=64,
        pooled=True,
        fail_on_batch=None,
    ):
        self.model_name = model_name
        self.width = width
        self.capacity = capacity
        self.pooled = pooled
        self.fail_on_batch = fail_on_batch
        self.table = np.random.default_rng(1234).normal(size=(VOCAB_SIZE, width))
        self.submitted = []
        self._sequence_vectors = []
        self._position_vectors = []

    def native_embedding_width(self):
        return self.width

    def max_batch_token_width(self):
        return self.capacity

    def bos_token(self):
        return BOS

    def eos_token(self):
        return EOS

    def tokenize(self, text, want_bos):
        tokens = [3 + ord(c) % (VOCAB_SIZE - 3) for c in text if not c.isspace()]
        if want_bos:
            tokens.insert(0, BOS)
        return tokens

    def submit_batch(self, batch):
        if self.fail_on_batch is not None and len(self.submitted) == self.fail_on_batch:
            return False
        sequences = [batch.sequence(slot) for slot in range(batch.n_slots)]
        self.submitted.append(
            {
                "sequences": sequences,
                "sources": list(batch.slot_sources),
                "outputs": batch.output_indices(),
                "n_tokens": batch.n_tokens,
            }
        )
        self._sequence_vectors = [self.table[seq].mean(axis=0) for seq in sequences]
        self._position_vectors = [
            self.table[token] + 0.01 * position
            for token, position in zip(batch.tokens, batch.positions)
        ]
        return True

    def sequence_vector(self, slot):
        if not self.pooled:
            return None
        return self._sequence_vectors[slot]

    def position_vector(self, index):
        return self._position_vectors[index]


@pytest.fixture
def fake_encoder():
    return FakeEncoder()


@pytest.fixture
def make_encoder():
    return FakeEncoder


@pytest.fixture(autouse=True)
def reset_caches(monkeypatch):
    """Every test starts from the packaged appsettings.json with no env overrides."""
    for name in list(os.environ):
        if name.startswith("EMBEDPIPE_") and name != "EMBEDPIPE_LOG_PATH":
            monkeypatch.delenv(name, raising=False)
    ConfigLoader.clear_cache()
    resource_manager.clear_encoder_cache()
    resource_manager._encoder_cache = None
    yield
    ConfigLoader.clear_cache()
    resource_manager._encoder_cache = None
    set_log_level("INFO")

