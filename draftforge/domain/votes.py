"""Team votes on the top of the manual queue."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .exceptions import DraftForgeError, QueueEntryNotFound, Unauthorized
from .execution import CommittedPick, ExecutionGateway
from .resolver import PickSource
from ..storage.base import MembershipSource, QueueStore, TurnAuthority

logger = logging.getLogger(__name__)


def quorum_for(member_count: int) -> int:
    """51% of the team rounded to the nearest member, never below one."""
    return max(1, (member_count * 51 + 50) // 100)


@dataclass(frozen=True, slots=True)
class VoteOutcome:
    approvals: frozenset[str]
    quorum: int
    position: int
    quorum_reached: bool
    pick: CommittedPick | None = None
    error: DraftForgeError | None = None

    @property
    def executed(self) -> bool:
        return self.pick is not None


class VoteCoordinator:
    """Toggle approvals and hand a ratified first pick to the gateway.

    The vote is stored before execution is attempted and is never rolled
    back; a failed execution comes back on ``VoteOutcome.error``.
    """

    def __init__(
        self,
        queue_store: QueueStore,
        membership: MembershipSource,
        turns: TurnAuthority,
        gateway: ExecutionGateway,
    ) -> None:
        self._queues = queue_store
        self._membership = membership
        self._turns = turns
        self._gateway = gateway

    async def toggle_vote(self, team_id: str, instance_id: str, user_id: str) -> VoteOutcome:
        if not await self._membership.is_member(team_id, user_id):
            raise Unauthorized(team_id, user_id)

        entries = await self._queues.entries_for_team(team_id)
        entry = next((item for item in entries if item.instance_id == instance_id), None)
        if entry is None:
            raise QueueEntryNotFound(team_id, instance_id)

        approvals = set(entry.approvals)
        added = user_id not in approvals
        if added:
            approvals.add(user_id)
        else:
            approvals.remove(user_id)
        entry = await self._queues.update_approvals(team_id, instance_id, approvals)

        quorum = quorum_for(await self._membership.team_member_count(team_id))
        reached = entry.position == 1 and len(entry.approvals) >= quorum
        outcome = VoteOutcome(
            approvals=frozenset(entry.approvals),
            quorum=quorum,
            position=entry.position,
            quorum_reached=reached,
        )
        # Withdrawing a vote never drafts, even if quorum still holds.
        if not reached or not added:
            return outcome

        turn = await self._turns.current_turn()
        if turn is None or turn.team_id != team_id:
            return outcome

        try:
            pick = await self._gateway.execute_pick(
                team_id,
                instance_id,
                turn_id=turn.turn_id,
                actor_id=user_id,
                source=PickSource.MANUAL_QUEUE,
            )
        except DraftForgeError as exc:
            logger.warning("Vote-triggered pick of %s by team %s failed: %s", instance_id, team_id, exc)
            return VoteOutcome(
                approvals=outcome.approvals,
                quorum=quorum,
                position=entry.position,
                quorum_reached=True,
                error=exc,
            )
        return VoteOutcome(
            approvals=outcome.approvals,
            quorum=quorum,
            position=entry.position,
            quorum_reached=True,
            pick=pick,
        )
