"""Channel management: details, membership and ownership."""
from __future__ import annotations

import logging
import uuid
from typing import Any

from huddle.core.errors import InvalidStateError, NotFoundError
from huddle.core.settings import settings
from huddle.models import Channel, ChannelType, MemberRole
from huddle.schemas import ChannelMemberOut, ChannelOut, UserChannelOut
from huddle.services.base import BaseService, command
from huddle.services.projections import channel_fields, to_channel_out, to_preferences_out
from huddle.services.results import Result

logger = logging.getLogger(__name__)


class ChannelService(BaseService):
    """Commands on the channel aggregate.

    Membership changes go through :class:`~huddle.models.Channel` so the
    single-owner rule is enforced in one place.
    """

    def _load(self, channel_id: uuid.UUID) -> Channel:
        channel = self.uow.channels.get_by_id(channel_id)
        if channel is None:
            raise NotFoundError(f"Channel with ID {channel_id} not found")
        return channel

    def _broadcast(
        self,
        channel: Channel,
        event_name: str,
        payload: dict[str, Any],
        extra_user_ids: list[uuid.UUID] | None = None,
    ) -> None:
        recipients = list(dict.fromkeys([*channel.active_member_ids, *(extra_user_ids or [])]))
        self.dispatcher.to_channel(
            channel.id, recipients, f"channel_{event_name}", {"channel_id": str(channel.id), **payload}
        )

    @command("creating channel")
    def create_channel(
        self,
        user_id: uuid.UUID,
        name: str,
        description: str | None = None,
        channel_type: ChannelType = ChannelType.PUBLIC,
    ) -> Result[ChannelOut]:
        channel = Channel.create(
            name=name,
            description=description,
            channel_type=ChannelType(channel_type),
            created_by=user_id,
        )
        self.uow.channels.add(channel)
        self.uow.commit()
        logger.info("Channel %s (%s) created by %s", channel.id, channel.name, user_id)
        return Result.success(to_channel_out(channel))

    @command("updating channel")
    def update_channel(
        self,
        channel_id: uuid.UUID,
        user_id: uuid.UUID,
        *,
        name: str | None = None,
        description: str | None = None,
        channel_type: ChannelType | None = None,
    ) -> Result[ChannelOut]:
        """Change name, description or type. Owners and admins only."""
        channel = self._load(channel_id)
        channel.ensure_not_archived()
        channel.ensure_can_manage(user_id)
        if name is not None:
            channel.update_name(name)
        if description is not None:
            channel.update_description(description)
        if channel_type is not None:
            channel.change_type(ChannelType(channel_type))
        self.uow.commit()
        self._broadcast(channel, "updated", {"updated_by": str(user_id), "name": channel.name})
        return Result.success(to_channel_out(channel))

    @command("archiving channel")
    def archive_channel(self, channel_id: uuid.UUID, user_id: uuid.UUID) -> Result[ChannelOut]:
        """Archive ("delete") a channel. Only the owner may do this."""
        channel = self._load(channel_id)
        member = channel.get_active_member(user_id)
        if member.role is not MemberRole.OWNER:
            raise InvalidStateError("Only the channel owner can archive the channel")
        channel.ensure_not_archived()
        channel.archive()
        self.uow.commit()
        logger.info("Channel %s archived by %s", channel_id, user_id)
        self._broadcast(channel, "archived", {"archived_by": str(user_id)})
        return Result.success(to_channel_out(channel))

    @command("adding channel member")
    def add_member(
        self,
        channel_id: uuid.UUID,
        actor_id: uuid.UUID,
        user_id: uuid.UUID,
        role: MemberRole = MemberRole.MEMBER,
    ) -> Result[ChannelMemberOut]:
        channel = self._load(channel_id)
        channel.ensure_not_archived()
        channel.ensure_can_manage(actor_id)
        member = channel.add_member(user_id, MemberRole(role))
        self.uow.commit()
        logger.info("User %s added to channel %s as %s", user_id, channel_id, member.role.value)
        self._broadcast(
            channel,
            "member_added",
            {"user_id": str(user_id), "role": member.role.value, "added_by": str(actor_id)},
        )
        return Result.success(ChannelMemberOut.model_validate(member))

    @command("removing channel member")
    def remove_member(
        self, channel_id: uuid.UUID, actor_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[None]:
        channel = self._load(channel_id)
        channel.ensure_can_manage(actor_id)
        channel.remove_member(user_id)
        self.uow.commit()
        logger.info("User %s removed from channel %s by %s", user_id, channel_id, actor_id)
        self._broadcast(
            channel,
            "member_removed",
            {"user_id": str(user_id), "removed_by": str(actor_id)},
            extra_user_ids=[user_id],
        )
        return Result.success(None)

    @command("updating member role")
    def update_member_role(
        self,
        channel_id: uuid.UUID,
        actor_id: uuid.UUID,
        user_id: uuid.UUID,
        role: MemberRole,
    ) -> Result[ChannelMemberOut]:
        channel = self._load(channel_id)
        channel.ensure_can_manage(actor_id)
        member = channel.update_member_role(user_id, MemberRole(role))
        self.uow.commit()
        self._broadcast(
            channel,
            "member_role_updated",
            {"user_id": str(user_id), "role": member.role.value, "updated_by": str(actor_id)},
        )
        return Result.success(ChannelMemberOut.model_validate(member))

    @command("transferring ownership")
    def transfer_ownership(
        self, channel_id: uuid.UUID, current_owner_id: uuid.UUID, new_owner_id: uuid.UUID
    ) -> Result[ChannelOut]:
        """Hand the channel to another member. The previous owner becomes an admin."""
        channel = self._load(channel_id)
        channel.transfer_ownership(current_owner_id, new_owner_id)
        self.uow.commit()
        logger.info(
            "Channel %s ownership moved from %s to %s", channel_id, current_owner_id, new_owner_id
        )
        self._broadcast(
            channel,
            "ownership_transferred",
            {"previous_owner_id": str(current_owner_id), "new_owner_id": str(new_owner_id)},
        )
        return Result.success(to_channel_out(channel))

    @command("joining channel")
    def join_channel(self, channel_id: uuid.UUID, user_id: uuid.UUID) -> Result[ChannelMemberOut]:
        channel = self._load(channel_id)
        member = channel.join(user_id)
        self.uow.commit()
        logger.info("User %s joined channel %s", user_id, channel_id)
        self._broadcast(channel, "member_joined", {"user_id": str(user_id)})
        return Result.success(ChannelMemberOut.model_validate(member))

    @command("leaving channel")
    def leave_channel(self, channel_id: uuid.UUID, user_id: uuid.UUID) -> Result[None]:
        channel = self._load(channel_id)
        channel.leave(user_id)
        self.uow.commit()
        logger.info("User %s left channel %s", user_id, channel_id)
        self._broadcast(channel, "member_left", {"user_id": str(user_id)}, extra_user_ids=[user_id])
        return Result.success(None)

    @command("loading channel")
    def get_channel(self, channel_id: uuid.UUID, user_id: uuid.UUID) -> Result[ChannelOut]:
        """Public channels are visible to anyone, private ones to members only."""
        channel = self._load(channel_id)
        if channel.type is ChannelType.PRIVATE:
            channel.get_active_member(user_id)
        return Result.success(to_channel_out(channel))

    @command("listing channel members")
    def list_members(
        self, channel_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[list[ChannelMemberOut]]:
        channel = self._load(channel_id)
        if channel.type is ChannelType.PRIVATE:
            channel.get_active_member(user_id)
        active = sorted(
            (member for member in channel.members if member.is_active),
            key=lambda member: member.role.rank,
        )
        return Result.success([ChannelMemberOut.model_validate(member) for member in active])

    @command("listing user channels")
    def list_user_channels(
        self, user_id: uuid.UUID, include_archived: bool = False
    ) -> Result[list[UserChannelOut]]:
        """Channels the caller belongs to, pinned first, with unread counts."""
        items: list[UserChannelOut] = []
        for channel in self.uow.channels.list_for_user(user_id, include_archived):
            member = channel.get_active_member(user_id)
            unread = self.uow.channel_messages.count_unread(channel.id, user_id, member.joined_at)
            items.append(
                UserChannelOut(
                    **channel_fields(channel),
                    role=member.role,
                    unread_count=unread,
                    preferences=to_preferences_out(member),
                )
            )
        items.sort(key=lambda item: not item.preferences.is_pinned)
        return Result.success(items)

    @command("listing public channels")
    def list_public_channels(
        self, search: str | None = None, limit: int | None = None
    ) -> Result[list[ChannelOut]]:
        channels = self.uow.channels.list_public(search, settings.clamp_page_size(limit))
        return Result.success([to_channel_out(channel) for channel in channels])
