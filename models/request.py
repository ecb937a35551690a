"""Request bodies for the HTTP service (strict validation, extra=forbid)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models.options import CleanOptions


class CleanRequest(BaseModel):
    """Body for ``POST /clean``."""

    model_config = ConfigDict(extra="forbid")

    html: str
    options: Optional[CleanOptions] = None


class RecipesRequest(BaseModel):
    """Body for ``POST /recipes``."""

    model_config = ConfigDict(extra="forbid")

    html: str


class FetchRequest(BaseModel):
    """Body for ``POST /fetch``.

    ``timeout`` is in milliseconds.  With ``clean`` set, the fetched page
    is also reduced (using ``options``) and its JSON-LD recipes extracted.
    """

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    url: str = Field(min_length=1)
    timeout: Optional[int] = Field(default=None, gt=0)
    clean: bool = False
    options: Optional[CleanOptions] = None
