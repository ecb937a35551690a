"""Recipe record produced by the JSON-LD extractor."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Recipe(BaseModel):
    """A Schema.org Recipe flattened to plain strings."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    recipe_yield: Optional[str] = None
    recipe_ingredients: list[str] = Field(default_factory=list)
    recipe_instructions: list[str] = Field(default_factory=list)
