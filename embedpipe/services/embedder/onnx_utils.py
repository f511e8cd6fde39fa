# =============================================================================
# File: onnx_utils.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

"""ONNX model input/output preparation and name resolution."""

import logging
from typing import Any, Dict, List, Optional

import numpy as np

from embedpipe.logger import get_logger

logger = get_logger("embedpipe.onnx")


def _select_name(
    config_name: Optional[str],
    candidates: List[str],
    model_input_names: List[str],
    default: Optional[str] = None,
) -> Optional[str]:
    """Select input name using 4-tier matching: config → exact → case-insensitive → substring."""
    if config_name:
        return config_name

    for cand in candidates:
        if cand in model_input_names:
            return cand

    model_input_names_lc = [n.lower() for n in model_input_names]
    for cand in candidates:
        lc = cand.lower()
        if lc in model_input_names_lc:
            return model_input_names[model_input_names_lc.index(lc)]

    for cand in candidates:
        lc = cand.lower()
        for name, name_lc in zip(model_input_names, model_input_names_lc):
            if lc in name_lc:
                return name

    return default


def build_onnx_inputs(
    input_ids: np.ndarray,
    attention_mask: np.ndarray,
    session: Any,
    input_names_config: Any = None,
) -> Dict[str, np.ndarray]:
    """Map padded (n_seq, seq_len) arrays onto the session's declared input names.

    token_type_ids and position_ids are only added when the graph declares them.
    """
    model_input_names = [inp.name for inp in session.get_inputs()]

    input_id_name = _select_name(
        getattr(input_names_config, "input", None),
        ["input_ids", "input"],
        model_input_names,
        "input_ids",
    )
    inputs: Dict[str, np.ndarray] = {str(input_id_name): input_ids.astype(np.int64)}

    mask_name = _select_name(
        getattr(input_names_config, "mask", None),
        ["attention_mask", "mask"],
        model_input_names,
        None,
    )
    if mask_name:
        inputs[str(mask_name)] = attention_mask.astype(np.int64)

    token_type_name = getattr(input_names_config, "tokentype", None) or _select_name(
        None, ["token_type_ids"], model_input_names, None
    )
    if token_type_name and token_type_name in model_input_names:
        inputs[str(token_type_name)] = np.zeros_like(input_ids, dtype=np.int64)

    position_name = getattr(input_names_config, "position", None) or _select_name(
        None, ["position_ids"], model_input_names, None
    )
    if position_name and position_name in model_input_names:
        positions = np.arange(input_ids.shape[1], dtype=np.int64)[None, :]
        inputs[str(position_name)] = np.broadcast_to(positions, input_ids.shape).copy()

    return inputs


def log_onnx_outputs(outputs: List[np.ndarray], session: Any) -> None:
    """Log ONNX output tensor information for debugging."""
    if not logger.isEnabledFor(logging.DEBUG):
        return

    output_names = get_output_names_from_session(session)
    for idx, (output, name) in enumerate(zip(outputs, output_names)):
        logger.debug(f"ONNX output {idx} ({name}): shape={output.shape}, dtype={output.dtype}")


def get_native_dimension_from_session(session: Any) -> Optional[int]:
    """Extract the native embedding dimension from ONNX session output shape.

    Args:
        session: ONNX Runtime session

    Returns:
        Native dimension from last axis of first output, or None if not detected
    """
    try:
        outputs = session.get_outputs()
        if outputs:
            output_shape = outputs[0].shape
            # Symbolic axes (e.g. 'batch_size') come back as strings
            if output_shape and len(output_shape) >= 2:
                last_dim = output_shape[-1]
                if isinstance(last_dim, (int, np.integer)):
                    logger.debug(f"Detected native dimension from ONNX output: {last_dim}")
                    return int(last_dim)
    except (AttributeError, TypeError, IndexError) as e:
        logger.warning(f"Could not auto-detect dimension from ONNX session: {e}")
    return None


def get_output_names_from_session(session: Any) -> List[str]:
    """Extract output tensor names from ONNX session."""
    try:
        return [output.name for output in session.get_outputs()]
    except (AttributeError, TypeError) as e:
        logger.warning(f"Could not auto-detect output names from ONNX session: {e}")
    return []
