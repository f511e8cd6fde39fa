# =============================================================================
# File: encoder.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

"""Encoder backends: the runtime that tokenizes text and decodes token batches."""

from typing import Any, List, Optional, Protocol, runtime_checkable

import numpy as np

from embedpipe.config.encoder_config import EncoderConfig
from embedpipe.exceptions import ModelLoadError, TokenizerError
from embedpipe.logger import get_logger
from embedpipe.services.embedder import onnx_utils
from embedpipe.services.embedder.batching import TokenBatch
from embedpipe.utils.log_sanitizer import sanitize_for_log
from embedpipe.utils.pooling_strategies import PoolingStrategies

logger = get_logger("embedpipe.encoder")


@runtime_checkable
class EncoderBackend(Protocol):
    """What the embedding pipeline needs from a model runtime."""

    model_name: Optional[str]

    def native_embedding_width(self) -> int: ...

    def max_batch_token_width(self) -> int: ...

    def bos_token(self) -> int: ...

    def eos_token(self) -> int: ...

    def tokenize(self, text: str, want_bos: bool) -> List[int]: ...

    def submit_batch(self, batch: TokenBatch) -> bool: ...

    def sequence_vector(self, slot: int) -> Optional[np.ndarray]: ...

    def position_vector(self, index: int) -> Optional[np.ndarray]: ...


class OnnxEncoder:
    """EncoderBackend over a Hugging Face tokenizer and an ONNX Runtime session.

    Each submitted batch is padded into (n_slots, longest_sequence) arrays and
    run in one session call; the first output is kept until the next batch.
    """

    def __init__(self, tokenizer: Any, session: Any, config: EncoderConfig):
        self.tokenizer = tokenizer
        self.session = session
        self.config = config
        self.model_name = config.model_name
        self._hidden: Optional[np.ndarray] = None
        self._mask: Optional[np.ndarray] = None
        self._slots: List[int] = []
        self._positions: List[int] = []
        self._width: Optional[int] = config.dimension

    def native_embedding_width(self) -> int:
        if self._width is None:
            self._width = onnx_utils.get_native_dimension_from_session(self.session)
        if self._width is None:
            self._width = self._probe_width()
        return self._width

    def max_batch_token_width(self) -> int:
        return self.config.max_batch_tokens

    def bos_token(self) -> int:
        token = getattr(self.tokenizer, "cls_token_id", None)
        if token is None:
            token = getattr(self.tokenizer, "bos_token_id", None)
        if token is None:
            raise TokenizerError(f"Tokenizer for {self.model_name} has no BOS/CLS token")
        return int(token)

    def eos_token(self) -> int:
        token = getattr(self.tokenizer, "sep_token_id", None)
        if token is None:
            token = getattr(self.tokenizer, "eos_token_id", None)
        if token is None:
            raise TokenizerError(f"Tokenizer for {self.model_name} has no EOS/SEP token")
        return int(token)

    def _pad_token(self) -> int:
        token = getattr(self.tokenizer, "pad_token_id", None)
        return int(token) if token is not None else 0

    def tokenize(self, text: str, want_bos: bool) -> List[int]:
        tokens = list(self.tokenizer.encode(text, add_special_tokens=False))
        add_bos = self.config.add_bos if self.config.add_bos is not None else True
        if want_bos and add_bos:
            tokens.insert(0, self.bos_token())
        return tokens

    def submit_batch(self, batch: TokenBatch) -> bool:
        sequences = [batch.sequence(slot) for slot in range(batch.n_slots)]
        if not sequences:
            return True
        longest = max(len(seq) for seq in sequences)

        input_ids = np.full((len(sequences), longest), self._pad_token(), dtype=np.int64)
        attention_mask = np.zeros((len(sequences), longest), dtype=np.int64)
        for row, seq in enumerate(sequences):
            input_ids[row, : len(seq)] = seq
            attention_mask[row, : len(seq)] = 1

        inputs = onnx_utils.build_onnx_inputs(
            input_ids, attention_mask, self.session, self.config.inputnames
        )
        output_name = self.config.outputnames.output
        try:
            outputs = self.session.run([output_name] if output_name else None, inputs)
        except Exception as e:
            logger.error(
                "ONNX session run failed for %s: %s",
                sanitize_for_log(self.model_name),
                sanitize_for_log(str(e)),
            )
            return False
        onnx_utils.log_onnx_outputs(outputs, self.session)

        self._hidden = np.asarray(outputs[0])
        self._mask = attention_mask
        self._slots = list(batch.slots)
        self._positions = list(batch.positions)
        if self._width is None:
            self._width = int(self._hidden.shape[-1])
        return True

    def sequence_vector(self, slot: int) -> Optional[np.ndarray]:
        if self._hidden is None:
            return None
        if self._hidden.ndim == 2:
            return self._hidden[slot]
        return PoolingStrategies.apply(
            self._hidden[slot], self.config.pooling_strategy, self._mask[slot]
        )

    def position_vector(self, index: int) -> Optional[np.ndarray]:
        if self._hidden is None:
            return None
        slot = self._slots[index]
        if self._hidden.ndim == 2:
            return self._hidden[slot]
        return self._hidden[slot, self._positions[index]]

    def _probe_width(self) -> int:
        """Decode a two-token sequence to learn the output width."""
        probe = TokenBatch(capacity=2)
        probe.add_sequence([self.bos_token(), self.eos_token()], 0)
        if not self.submit_batch(probe):
            raise ModelLoadError(f"Could not determine embedding width of {self.model_name}")
        logger.info(f"Detected native dimension {self._width} for {self.model_name}")
        return self._width
