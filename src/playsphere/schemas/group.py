"""Group chat Pydantic schemas."""

from datetime import datetime

from pydantic import ConfigDict, Field

from .common import CamelModel


class GroupCreate(CamelModel):
    """Schema for creating a group; the caller becomes its owner."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)


class GroupResponse(CamelModel):
    """Schema for group information returned by the API."""

    id: int
    name: str
    owner_id: int
    created_at: datetime
    admin_ids: list[int]


class MemberAdd(CamelModel):
    """Owner request to add a user to a group."""

    user_id: int


class OwnershipTransfer(CamelModel):
    """Owner request to hand the group to another member."""

    new_owner_id: int
