"""Game catalog schemas."""

from pydantic import ConfigDict, Field

from .common import CamelModel


class GameCreate(CamelModel):
    """Schema for adding a game to the catalog."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    categories: list[str] = Field(default_factory=list)
    platforms: list[str] = Field(default_factory=list)
    contact: str | None = None
    downloads: int | None = Field(None, ge=0)


class GameResponse(CamelModel):
    """Schema for catalog entries returned by the API."""

    id: int
    name: str
    categories: list[str]
    platforms: list[str]
    contact: str | None
    downloads: int | None
