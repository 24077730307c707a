from __future__ import annotations

from typing import Generic, TypeVar

from account_console.app.infrastructure.logging.logger import get_logger, log_action

StateT = TypeVar("StateT")

logger = get_logger("account_console.flows")


class Flow(Generic[StateT]):
    """Holds the current phase of one user-driven flow and logs its transitions.

    Cancelling, resetting or closing a flow advances its epoch. A gateway call
    issued under an older epoch has its result dropped when it lands.
    """

    module = "flow"

    def __init__(self, initial: StateT, actor: str | None = None) -> None:
        self._state = initial
        self._actor = actor
        self._closed = False
        self._epoch = 0

    @property
    def state(self) -> StateT:
        return self._state

    @property
    def phase(self) -> str:
        return getattr(self._state, "phase")

    @property
    def last_error(self) -> str | None:
        return getattr(self._state, "last_error", None)

    @property
    def closed(self) -> bool:
        return self._closed

    def _discard_pending(self) -> None:
        self._epoch += 1

    def _is_stale(self, epoch: int) -> bool:
        return self._closed or epoch != self._epoch

    def _transition(self, new_state: StateT, action: str, outcome: str) -> StateT:
        previous = self.phase
        self._state = new_state
        log_action(
            logger,
            self.module,
            action,
            self._actor,
            outcome,
            phase_from=previous,
            phase_to=self.phase,
        )
        return new_state
