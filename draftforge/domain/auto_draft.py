"""Auto-draft orchestration for the team on the clock."""

from __future__ import annotations

from .execution import CommittedPick, ExecutionGateway
from .exceptions import TeamNotOnClock, Unauthorized
from .resolver import AlgorithmPick, PickDecision, PickResolver, PickSource, SkippedPick
from ..storage.base import MembershipSource, SkipRecord, TurnAuthority


class AutoDraftService:
    """Preview and execute picks through the resolver and gateway."""

    def __init__(
        self,
        resolver: PickResolver,
        gateway: ExecutionGateway,
        turns: TurnAuthority,
        membership: MembershipSource,
    ) -> None:
        self._resolver = resolver
        self._gateway = gateway
        self._turns = turns
        self._membership = membership

    async def preview(self, team_id: str) -> PickDecision:
        return await self._resolver.preview(team_id)

    async def execute(
        self, team_id: str, *, actor_id: str | None = None
    ) -> CommittedPick | SkipRecord:
        """Resolve and commit the pick for a team that is on the clock.

        Called by the scheduler when a pick timer runs out, or by a member
        confirming the auto-draft. A skip still advances the draft.
        """
        turn = await self._turns.current_turn()
        if turn is None:
            raise TeamNotOnClock(team_id)
        if turn.team_id != team_id:
            raise TeamNotOnClock(team_id, turn.team_id)

        decision = await self._resolver.resolve(team_id, at_commit=True)
        if isinstance(decision, SkippedPick):
            return await self._gateway.record_skip(
                team_id, decision, turn_id=turn.turn_id, actor_id=actor_id
            )
        return await self._gateway.execute_pick(
            team_id,
            decision.card.instance_id,
            turn_id=turn.turn_id,
            actor_id=actor_id,
            source=decision.source,
            details=decision.details if isinstance(decision, AlgorithmPick) else None,
        )

    async def draft_card(self, team_id: str, instance_id: str, *, actor_id: str) -> CommittedPick:
        """A member picks a specific card by hand."""
        if not await self._membership.is_member(team_id, actor_id):
            raise Unauthorized(team_id, actor_id)
        return await self._gateway.execute_pick(
            team_id, instance_id, actor_id=actor_id, source=PickSource.DIRECT
        )
