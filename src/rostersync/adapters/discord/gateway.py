"""Translate Discord gateway dispatches into membership events."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from rostersync.domain.errors import InvalidArgument
from rostersync.domain.events import (
    MembershipEvent,
    MembershipGranted,
    MembershipRevoked,
    ProfileRenamed,
)

from .schema import DiscordUser, GatewayDispatch, GuildMember, GuildMemberRemove

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from rostersync.domain.ports.authority import MemberSnapshot

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _KnownMember:
    username: str
    verified: bool


class GatewayTranslator:
    """Stateful translator: Discord sends the new member state only, so the
    previous state is kept here to detect a newly acquired verified role and
    real username changes.
    """

    def __init__(self, verified_role_id: str) -> None:
        self.verified_role_id = verified_role_id
        self._members: dict[str, _KnownMember] = {}

    def remember(self, snapshot: MemberSnapshot, *, verified: bool | None = None) -> None:
        """Seed state from a REST snapshot.

        ``verified`` overrides the role check for snapshots that come from an
        already filtered member list.
        """

        if verified is None:
            verified = self.verified_role_id in snapshot.role_ids
        self._members[snapshot.external_id] = _KnownMember(
            username=snapshot.display_name,
            verified=verified,
        )

    def remember_all(
        self,
        snapshots: Iterable[MemberSnapshot],
        *,
        verified: bool | None = None,
    ) -> None:
        for snapshot in snapshots:
            self.remember(snapshot, verified=verified)

    def known(self, external_id: str) -> bool:
        return external_id in self._members

    def translate(self, dispatch: GatewayDispatch | Mapping[str, object]) -> list[MembershipEvent]:
        if not isinstance(dispatch, GatewayDispatch):
            try:
                dispatch = GatewayDispatch.model_validate(dispatch)
            except ValidationError as exc:
                raise InvalidArgument(f"Malformed gateway dispatch: {exc}") from exc

        try:
            match dispatch.t:
                case "GUILD_MEMBER_ADD" | "GUILD_MEMBER_UPDATE":
                    return self._on_member_state(GuildMember.model_validate(dispatch.d))
                case "GUILD_MEMBER_REMOVE":
                    return self._on_member_remove(GuildMemberRemove.model_validate(dispatch.d))
                case "USER_UPDATE":
                    return self._on_user_update(DiscordUser.model_validate(dispatch.d))
                case _:
                    log.debug("Ignoring gateway dispatch %s", dispatch.t)
                    return []
        except ValidationError as exc:
            raise InvalidArgument(f"Malformed {dispatch.t} payload: {exc}") from exc

    def _on_member_state(self, member: GuildMember) -> list[MembershipEvent]:
        external_id = member.user.id
        username = member.user.username
        previous = self._members.get(external_id)
        verified = member.has_role(self.verified_role_id)
        self._members[external_id] = _KnownMember(username=username, verified=verified)

        events: list[MembershipEvent] = []
        if previous is not None and previous.username != username:
            events.append(
                ProfileRenamed(
                    external_id=external_id,
                    old_display_name=previous.username,
                    new_display_name=username,
                )
            )
        was_verified = previous is not None and previous.verified
        if verified and not was_verified:
            events.append(
                MembershipGranted(
                    external_id=external_id,
                    display_name=username,
                    joined_at=member.joined_at,
                )
            )
        return events

    def _on_member_remove(self, payload: GuildMemberRemove) -> list[MembershipEvent]:
        self._members.pop(payload.user.id, None)
        return [MembershipRevoked(external_id=payload.user.id)]

    def _on_user_update(self, user: DiscordUser) -> list[MembershipEvent]:
        previous = self._members.get(user.id)
        if previous is None or previous.username == user.username:
            return []
        self._members[user.id] = _KnownMember(username=user.username, verified=previous.verified)
        return [
            ProfileRenamed(
                external_id=user.id,
                old_display_name=previous.username,
                new_display_name=user.username,
            )
        ]
