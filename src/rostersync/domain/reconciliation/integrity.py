"""Keep ``Profile.identity_ref`` pointing at the live Identity for its person."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from rostersync.domain.reconciliation.locks import KeyedLock

if TYPE_CHECKING:
    from uuid import UUID

    from rostersync.domain.model import Profile
    from rostersync.domain.ports.unit_of_work import UnitOfWorkFactory

log = getLogger(__name__)


class RelinkStatus(StrEnum):
    NO_PROFILE = "no_profile"
    UNCHANGED = "unchanged"
    LINKED = "linked"
    RELINKED = "relinked"


@dataclass(frozen=True, slots=True)
class RelinkResult:
    status: RelinkStatus
    profile: Profile | None = None
    previous_ref: UUID | None = None
    orphan_deleted: bool = False


@dataclass(slots=True)
class SweepResult:
    profiles_checked: int = 0
    refs_repaired: int = 0
    refs_cleared: int = 0


class ReferenceIntegrityManager:
    """Repairs the Profile -> Identity back-reference.

    Writes happen in two committed steps: the profile is repointed first and
    the superseded Identity is deleted afterwards. A crash in between leaves a
    stale Identity behind, which the next relink or :meth:`sweep` cleans up.

    The superseded Identity is deleted only when it belongs to the same
    external id. If the old ref pointed at another member's Identity, the
    profile is still repointed but that row is left alone.
    """

    def __init__(
        self,
        *,
        unit_of_work_factory: UnitOfWorkFactory,
        locks: KeyedLock | None = None,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._locks = locks or KeyedLock()

    def relink_identity(
        self,
        external_id: str,
        new_identity_key: UUID,
        display_name: str,
    ) -> RelinkResult:
        with self._uow_factory() as uow:
            profiles = uow.repositories.profiles
            profile = profiles.get(external_id)
            if profile is None:
                log.debug("No profile for %s; identity stays unlinked", external_id)
                return RelinkResult(status=RelinkStatus.NO_PROFILE)
            old_key = profile.identity_ref
            profile = profiles.upsert(
                external_id,
                identity_ref=new_identity_key,
                display_name=display_name,
            )
            uow.commit()

        if old_key is None:
            log.info("Linked profile %s to identity %s", external_id, new_identity_key)
            return RelinkResult(status=RelinkStatus.LINKED, profile=profile)
        if old_key == new_identity_key:
            return RelinkResult(status=RelinkStatus.UNCHANGED, profile=profile, previous_ref=old_key)

        deleted = self._delete_superseded(external_id, old_key)
        log.info(
            "Relinked profile %s from identity %s to %s (old row deleted: %s)",
            external_id,
            old_key,
            new_identity_key,
            deleted,
        )
        return RelinkResult(
            status=RelinkStatus.RELINKED,
            profile=profile,
            previous_ref=old_key,
            orphan_deleted=deleted,
        )

    def sweep(self) -> SweepResult:
        """Repoint or clear every identity_ref that does not resolve to the live Identity."""

        result = SweepResult()
        with self._uow_factory() as uow:
            external_ids = [profile.external_id for profile in uow.repositories.profiles.list_all()]

        for external_id in external_ids:
            with self._locks.hold(external_id):
                outcome = self._repair_one(external_id)
            result.profiles_checked += 1
            if outcome == "repaired":
                result.refs_repaired += 1
            elif outcome == "cleared":
                result.refs_cleared += 1

        log.info(
            "Reference sweep finished: checked=%s repaired=%s cleared=%s",
            result.profiles_checked,
            result.refs_repaired,
            result.refs_cleared,
        )
        return result

    def _repair_one(self, external_id: str) -> Literal["repaired", "cleared"] | None:
        with self._uow_factory() as uow:
            profile = uow.repositories.profiles.get(external_id)
            if profile is None:
                return None
            live = uow.repositories.identities.get(external_id)
            if live is None:
                if profile.identity_ref is None:
                    return None
                uow.repositories.profiles.upsert(external_id, identity_ref=None)
                uow.commit()
                log.info("Cleared identity_ref of %s: member has no identity", external_id)
                return "cleared"
            if profile.identity_ref == live.key:
                return None
            uow.repositories.profiles.upsert(external_id, identity_ref=live.key)
            uow.commit()
            log.info(
                "Repaired identity_ref of %s: %s -> %s",
                external_id,
                profile.identity_ref,
                live.key,
            )
            return "repaired"

    def _delete_superseded(self, external_id: str, old_key: UUID) -> bool:
        with self._uow_factory() as uow:
            identities = uow.repositories.identities
            stale = identities.get_by_key(old_key)
            if stale is None:
                return False
            if stale.external_id != external_id:
                # the ref was crossed with another member's row; that row is still theirs
                log.warning(
                    "Profile %s referenced identity %s of %s; leaving it in place",
                    external_id,
                    old_key,
                    stale.external_id,
                )
                return False
            deleted = identities.delete_by_key(old_key)
            uow.commit()
            return deleted
