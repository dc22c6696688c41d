"""Base model configuration for settings and reporter options."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Frozen model that accepts both field names and their aliases."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)
