from typing import Optional

from pydantic import BaseModel, Field


class AppConfig(BaseModel):
    name: str = Field(default="embedpipe")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")


class EmbeddingSection(BaseModel):
    chunk_overlap: int = Field(default=8, ge=0)
    long_document_max_tokens: int = Field(default=8192, gt=0)
    encoder_cache_size: int = Field(default=3, gt=0)


class OnnxConfigSection(BaseModel):
    onnx_path: Optional[str] = None
    config_file: Optional[str] = Field(default="models_config.json")
    session_provider: str = Field(default="CPUExecutionProvider")


class AppSettings(BaseModel):
    app: AppConfig = Field(default_factory=AppConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    embedding: EmbeddingSection = Field(default_factory=EmbeddingSection)
    onnx: OnnxConfigSection = Field(default_factory=OnnxConfigSection)
