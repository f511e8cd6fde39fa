from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


class Chunk(BaseModel):
    """One token window of one input, prefix included, terminator excluded."""

    model_config = ConfigDict(frozen=True)

    source_index: int = Field(..., ge=0, description="Index of the input this window came from.")
    tokens: Tuple[int, ...] = Field(..., description="Prefix tokens followed by the window tokens.")
