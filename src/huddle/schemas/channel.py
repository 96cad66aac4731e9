# src/huddle/schemas/channel.py
"""Channel-related Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from huddle.models.channel import ChannelType, MemberRole

from .conversation import PreferencesOut


class ChannelCreate(BaseModel):
    """Schema for creating a channel."""

    name: str = Field(..., description="Channel name, up to 100 characters")
    description: str | None = Field(None, description="Optional description, up to 500 characters")
    type: ChannelType = Field(ChannelType.PUBLIC, description="public or private")


class ChannelUpdate(BaseModel):
    """Schema for changing channel details; omitted fields are left alone."""

    name: str | None = None
    description: str | None = None
    type: ChannelType | None = None


class AddMemberRequest(BaseModel):
    user_id: uuid.UUID
    role: MemberRole = MemberRole.MEMBER


class UpdateRoleRequest(BaseModel):
    role: MemberRole


class TransferOwnershipRequest(BaseModel):
    new_owner_id: uuid.UUID


class ChannelMemberOut(BaseModel):
    """Membership entry as listed for a channel."""

    user_id: uuid.UUID
    role: MemberRole
    joined_at: datetime
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ChannelOut(BaseModel):
    """Channel details."""

    id: uuid.UUID
    name: str
    description: str | None
    type: ChannelType
    created_by: uuid.UUID
    is_archived: bool
    archived_at: datetime | None
    created_at: datetime
    member_count: int


class UserChannelOut(ChannelOut):
    """Channel as listed for one member, with unread count and preferences."""

    role: MemberRole
    unread_count: int = 0
    preferences: PreferencesOut
