"""Response bodies for the HTTP service."""

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from models.recipe import Recipe
from models.result import PageCleaningResult


class RecipesResponse(BaseModel):
    """Response body for ``POST /recipes``."""

    recipes: list[Recipe]


class FetchResponse(BaseModel):
    """Response body for ``POST /fetch``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    html: str
    final_url: str
    cleaned: Optional[PageCleaningResult] = None
    recipes: Optional[list[Recipe]] = None
