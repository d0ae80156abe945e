"""Exceptions raised by DraftForge domain services."""


class DraftForgeError(RuntimeError):
    """Base class for domain exceptions."""

    retryable = False


class NoCardsAvailable(DraftForgeError):
    """Raised when the shared pool has no undrafted cards left."""


class CardUnavailable(DraftForgeError):
    """Raised when an instance was already drafted or is not in the pool."""

    def __init__(self, instance_id: str, message: str | None = None) -> None:
        super().__init__(message or f"Card {instance_id} is no longer available")
        self.instance_id = instance_id


class InsufficientBalance(DraftForgeError):
    """Raised when a team cannot pay for a pick."""

    def __init__(self, need: int, have: int) -> None:
        super().__init__(f"Insufficient funds: need {need}, have {have}")
        self.need = need
        self.have = have

    @property
    def shortfall(self) -> int:
        return self.need - self.have


class TeamNotOnClock(DraftForgeError):
    """Raised when a team tries to pick outside of its turn."""

    def __init__(self, team_id: str, on_clock: str | None = None) -> None:
        if on_clock is None:
            message = f"Team {team_id} is not on the clock: no active draft"
        else:
            message = f"Team {team_id} is not on the clock (team {on_clock} is picking)"
        super().__init__(message)
        self.team_id = team_id
        self.on_clock = on_clock


class StoreUnavailable(DraftForgeError):
    """Raised when a storage collaborator fails transiently."""

    retryable = True


class QueueEntryNotFound(DraftForgeError):
    """Raised when a queue operation targets a card the team has not queued."""

    def __init__(self, team_id: str, instance_id: str) -> None:
        super().__init__(f"Card {instance_id} is not in the queue of team {team_id}")
        self.team_id = team_id
        self.instance_id = instance_id


class Unauthorized(DraftForgeError):
    """Raised when a non-member attempts a team-scoped mutation."""

    def __init__(self, team_id: str, user_id: str) -> None:
        super().__init__(f"User {user_id} must be a member of team {team_id}")
        self.team_id = team_id
        self.user_id = user_id
