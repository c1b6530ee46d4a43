from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from .data_models import SessionState


class SessionFSM(StateMachine):
    """Guards session transitions; the simulation performs the side effects.

    loading -> idle -> playing <-> paused
    playing/paused -> game_over -> idle | playing
    """

    loading = State(SessionState.LOADING.value, value=SessionState.LOADING.value, initial=True)
    idle = State(SessionState.IDLE.value, value=SessionState.IDLE.value)
    playing = State(SessionState.PLAYING.value, value=SessionState.PLAYING.value)
    paused = State(SessionState.PAUSED.value, value=SessionState.PAUSED.value)
    game_over = State(SessionState.GAME_OVER.value, value=SessionState.GAME_OVER.value)

    ready = loading.to(idle)
    begin = idle.to(playing) | game_over.to(playing)
    pause = playing.to(paused)
    resume = paused.to(playing)
    finish = playing.to(game_over) | paused.to(game_over)
    leave = game_over.to(idle)

    @property
    def session_state(self) -> SessionState:
        return SessionState(str(self.current_state.value))

    def try_send(self, event: str) -> bool:
        """Fires `event`; returns False instead of raising when it isn't allowed here."""
        before = self.current_state
        try:
            self.send(event)
        except TransitionNotAllowed:
            return False
        # No self-transitions exist, so an unchanged state means the event was dropped
        return self.current_state is not before
