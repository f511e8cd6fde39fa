from typing import List, Optional

from pydantic import BaseModel, Field


class InputNames(BaseModel):
    input: Optional[str] = None
    mask: Optional[str] = None
    position: Optional[str] = None
    tokentype: Optional[str] = None


class OutputNames(BaseModel):
    output: Optional[str] = None


class EncoderConfig(BaseModel):
    """Per-model settings for the ONNX Runtime encoder backend."""

    model_name: Optional[str] = None
    model_folder_name: Optional[str] = None
    encoder_onnx_model: str = Field(default="model.onnx")
    tasks: List[str] = Field(default_factory=lambda: ["embedding"])
    max_batch_tokens: int = Field(default=512, gt=0)
    dimension: Optional[int] = Field(default=None, gt=0)
    pooling_strategy: str = Field(default="mean")
    add_bos: Optional[bool] = None
    legacy_tokenizer: bool = Field(default=False)
    inputnames: InputNames = Field(default_factory=InputNames)
    outputnames: OutputNames = Field(default_factory=OutputNames)
