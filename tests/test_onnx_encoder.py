# =============================================================================
# File: test_onnx_encoder.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

from types import SimpleNamespace

import numpy as np
import pytest

from embedpipe.config.encoder_config import EncoderConfig, InputNames
from embedpipe.exceptions import ModelLoadError, TokenizerError
from embedpipe.services.embedder import onnx_utils
from embedpipe.services.embedder.batching import TokenBatch
from embedpipe.services.embedder.encoder import EncoderBackend, OnnxEncoder


class Node:
    def __init__(self, name, shape=None):
        self.name = name
        self.shape = shape


class SessionStub:
    """Returns hidden states where every component of a token state equals its id."""

    def __init__(self, input_names, output_shape, pooled=False, fail=False):
        self.inputs = [Node(n) for n in input_names]
        self.outputs = [Node("last_hidden_state", output_shape)]
        self.pooled = pooled
        self.fail = fail
        self.calls = []

    def get_inputs(self):
        return self.inputs

    def get_outputs(self):
        return self.outputs

    def run(self, output_names, inputs):
        if self.fail:
            raise RuntimeError("graph exploded")
        self.calls.append((output_names, inputs))
        ids = next(v for k, v in inputs.items() if "input" in k).astype(np.float32)
        hidden = ids[..., None] * np.ones(4, dtype=np.float32)
        if self.pooled:
            hidden = hidden.sum(axis=1)
        return [hidden]


def _tokenizer(**tokens):
    values = dict(cls_token_id=101, sep_token_id=102, pad_token_id=0)
    values.update(tokens)
    return SimpleNamespace(
        encode=lambda text, add_special_tokens: [ord(c) for c in text],
        **values,
    )


def _encoder(session=None, tokenizer=None, **config):
    config.setdefault("model_name", "all-MiniLM-L6-v2")
    config.setdefault("max_batch_tokens", 16)
    session = session or SessionStub(
        ["input_ids", "attention_mask", "token_type_ids"], ["batch", "seq", 4]
    )
    return OnnxEncoder(tokenizer or _tokenizer(), session, EncoderConfig(**config))


def _batch():
    batch = TokenBatch(16)
    batch.add_sequence([101, 5, 6, 102], 0)
    batch.add_sequence([101, 7, 102], 1)
    return batch


class TestOnnxEncoder:
    def test_is_an_encoder_backend(self):
        assert isinstance(_encoder(), EncoderBackend)

    def test_special_tokens(self):
        encoder = _encoder()
        assert encoder.bos_token() == 101
        assert encoder.eos_token() == 102
        assert encoder.max_batch_token_width() == 16

    def test_bos_falls_back_to_bos_token_id(self):
        encoder = _encoder(tokenizer=_tokenizer(cls_token_id=None, bos_token_id=0))
        assert encoder.bos_token() == 0

    def test_missing_bos_raises(self):
        encoder = _encoder(tokenizer=_tokenizer(cls_token_id=None, bos_token_id=None))
        with pytest.raises(TokenizerError):
            encoder.bos_token()

    def test_tokenize(self):
        encoder = _encoder()
        assert encoder.tokenize("ab", False) == [97, 98]
        assert encoder.tokenize("ab", True) == [101, 97, 98]
        assert _encoder(add_bos=False).tokenize("ab", True) == [97, 98]

    def test_width_from_config_then_session(self):
        assert _encoder(dimension=384).native_embedding_width() == 384
        assert _encoder().native_embedding_width() == 4

    def test_width_probed_when_shape_is_symbolic(self):
        session = SessionStub(["input_ids", "attention_mask"], ["batch", "seq", "hidden"])
        encoder = _encoder(session=session)
        assert encoder.native_embedding_width() == 4
        assert len(session.calls) == 1

    def test_width_probe_failure(self):
        session = SessionStub(["input_ids"], ["batch", "seq", "hidden"], fail=True)
        with pytest.raises(ModelLoadError):
            _encoder(session=session).native_embedding_width()

    def test_submit_pads_sequences(self):
        encoder = _encoder()
        assert encoder.submit_batch(_batch())

        output_names, inputs = encoder.session.calls[0]
        assert output_names is None
        np.testing.assert_array_equal(
            inputs["input_ids"], [[101, 5, 6, 102], [101, 7, 102, 0]]
        )
        np.testing.assert_array_equal(inputs["attention_mask"], [[1, 1, 1, 1], [1, 1, 1, 0]])
        np.testing.assert_array_equal(inputs["token_type_ids"], np.zeros((2, 4)))

    def test_sequence_vector_uses_configured_pooling(self):
        encoder = _encoder()
        encoder.submit_batch(_batch())
        np.testing.assert_allclose(encoder.sequence_vector(0), np.full(4, 53.5))
        np.testing.assert_allclose(encoder.sequence_vector(1), np.full(4, 70.0))

        cls_encoder = _encoder(pooling_strategy="cls")
        cls_encoder.submit_batch(_batch())
        np.testing.assert_allclose(cls_encoder.sequence_vector(1), np.full(4, 101.0))

    def test_position_vector(self):
        encoder = _encoder(pooling_strategy="none")
        batch = _batch()
        encoder.submit_batch(batch)
        assert encoder.sequence_vector(0) is None
        # batch index 6 is the terminator of slot 1
        np.testing.assert_allclose(encoder.position_vector(6), np.full(4, 102.0))

    def test_pooled_graph_output(self):
        session = SessionStub(["input_ids", "attention_mask"], ["batch", 4], pooled=True)
        encoder = _encoder(session=session)
        encoder.submit_batch(_batch())
        np.testing.assert_allclose(encoder.sequence_vector(1), np.full(4, 210.0))
        np.testing.assert_allclose(encoder.position_vector(6), np.full(4, 210.0))

    def test_configured_output_name_is_requested(self):
        encoder = _encoder(outputnames={"output": "sentence_embedding"})
        encoder.submit_batch(_batch())
        assert encoder.session.calls[0][0] == ["sentence_embedding"]

    def test_session_failure_returns_false(self):
        session = SessionStub(["input_ids"], ["batch", "seq", 4], fail=True)
        encoder = _encoder(session=session)
        assert encoder.submit_batch(_batch()) is False
        assert encoder.sequence_vector(0) is None


class TestOnnxInputs:
    def test_position_ids_only_when_declared(self):
        ids = np.array([[1, 2, 3]])
        mask = np.ones_like(ids)

        session = SessionStub(["input_ids", "attention_mask"], ["b", "s", 4])
        assert set(onnx_utils.build_onnx_inputs(ids, mask, session)) == {
            "input_ids",
            "attention_mask",
        }

        session = SessionStub(["input_ids", "attention_mask", "position_ids"], ["b", "s", 4])
        inputs = onnx_utils.build_onnx_inputs(ids, mask, session)
        np.testing.assert_array_equal(inputs["position_ids"], [[0, 1, 2]])

    def test_configured_names_win(self):
        ids = np.array([[1, 2]])
        session = SessionStub(["ids", "mask"], ["b", "s", 4])
        inputs = onnx_utils.build_onnx_inputs(
            ids, np.ones_like(ids), session, InputNames(input="ids", mask="mask")
        )
        assert set(inputs) == {"ids", "mask"}

    def test_case_insensitive_and_substring_matching(self):
        assert onnx_utils._select_name(None, ["input_ids"], ["INPUT_IDS"]) == "INPUT_IDS"
        assert (
            onnx_utils._select_name(None, ["attention_mask"], ["encoder_attention_mask"])
            == "encoder_attention_mask"
        )
        assert onnx_utils._select_name(None, ["mask"], ["ids"], "fallback") == "fallback"

    def test_native_dimension_detection(self):
        assert onnx_utils.get_native_dimension_from_session(
            SessionStub([], ["batch", "seq", 768])
        ) == 768
        assert onnx_utils.get_native_dimension_from_session(
            SessionStub([], ["batch", "seq", "hidden"])
        ) is None
