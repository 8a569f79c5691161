from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Base model that rejects unknown fields to keep schema strict."""

    model_config = ConfigDict(extra="forbid")


class FrozenModel(StrictModel):
    """Strict model whose instances are immutable after construction."""

    model_config = ConfigDict(extra="forbid", frozen=True)
