"""Model catalog schemas."""
from pydantic import BaseModel, Field


class ModelInfo(BaseModel):
    """A selectable inference backend, identified by its tag."""

    tag: str = Field(..., min_length=1, description="Unique, stable model identifier")
    name: str = Field(..., min_length=1, description="Human-readable label")
    description: str | None = Field(None, description="Optional free text")


class ModelsResponse(BaseModel):
    """Available models sorted by name."""

    models: list[ModelInfo] = Field(default_factory=list)
