"""Finite State Machine for solver execution phases."""

from enum import Enum
from typing import Optional, Set, Callable


class AlgoState(Enum):
    """States for a solver run."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETE = "complete"
    NO_PATH = "no_path"
    CANCELLED = "cancelled"
    ERROR = "error"


FINISHED_STATES = {AlgoState.COMPLETE, AlgoState.NO_PATH, AlgoState.CANCELLED, AlgoState.ERROR}


class AlgoStateMachine:
    """
    Finite State Machine for managing solver execution states.

    State Transitions:
    IDLE -> RUNNING (start)
    RUNNING -> PAUSED (pause)
    RUNNING -> COMPLETE (path found or training finished)
    RUNNING -> NO_PATH (frontier exhausted or walk failed)
    RUNNING -> CANCELLED, PAUSED -> CANCELLED (cancel)
    RUNNING -> ERROR, PAUSED -> ERROR (engine raised)
    PAUSED -> RUNNING (resume)
    any finished state or PAUSED -> IDLE (reset)
    """

    def __init__(self):
        self._current_state = AlgoState.IDLE
        self._state_callbacks = {}
        self._valid_transitions = self._build_transition_map()

    def _build_transition_map(self) -> dict[AlgoState, Set[AlgoState]]:
        """Build the valid state transition map."""
        return {
            AlgoState.IDLE: {AlgoState.RUNNING, AlgoState.ERROR},
            AlgoState.RUNNING: {AlgoState.PAUSED, AlgoState.COMPLETE, AlgoState.NO_PATH,
                                AlgoState.CANCELLED, AlgoState.ERROR},
            AlgoState.PAUSED: {AlgoState.RUNNING, AlgoState.CANCELLED, AlgoState.ERROR, AlgoState.IDLE},
            AlgoState.COMPLETE: {AlgoState.IDLE},
            AlgoState.NO_PATH: {AlgoState.IDLE},
            AlgoState.CANCELLED: {AlgoState.IDLE},
            AlgoState.ERROR: {AlgoState.IDLE},
        }

    @property
    def current_state(self) -> AlgoState:
        """Get the current state."""
        return self._current_state

    def can_transition_to(self, target_state: AlgoState) -> bool:
        """Check if transition to target state is valid."""
        return target_state in self._valid_transitions.get(self._current_state, set())

    def transition_to(self, target_state: AlgoState, context: Optional[dict] = None) -> bool:
        """
        Attempt to transition to the target state.

        Args:
            target_state: The state to transition to
            context: Optional context data for the transition

        Returns:
            True if transition was successful, False otherwise
        """
        if not self.can_transition_to(target_state):
            return False

        self._current_state = target_state

        if target_state in self._state_callbacks:
            self._state_callbacks[target_state](context)

        return True

    def on_state_enter(self, state: AlgoState, callback: Callable[[Optional[dict]], None]):
        """Register a callback for when entering a specific state."""
        self._state_callbacks[state] = callback

    # Convenience methods for common operations

    def can_start(self) -> bool:
        return self.can_transition_to(AlgoState.RUNNING) and not self.is_paused()

    def is_running(self) -> bool:
        return self._current_state == AlgoState.RUNNING

    def is_paused(self) -> bool:
        return self._current_state == AlgoState.PAUSED

    def is_idle(self) -> bool:
        return self._current_state == AlgoState.IDLE

    def is_active(self) -> bool:
        """Check if a run is in progress (running or paused)."""
        return self._current_state in (AlgoState.RUNNING, AlgoState.PAUSED)

    def is_finished(self) -> bool:
        """Check if the last run has ended, whatever the outcome."""
        return self._current_state in FINISHED_STATES

    def start(self, context: Optional[dict] = None) -> bool:
        return self.transition_to(AlgoState.RUNNING, context)

    def pause(self, context: Optional[dict] = None) -> bool:
        return self.transition_to(AlgoState.PAUSED, context)

    def resume(self, context: Optional[dict] = None) -> bool:
        if not self.is_paused():
            return False
        return self.transition_to(AlgoState.RUNNING, context)

    def complete(self, context: Optional[dict] = None) -> bool:
        return self.transition_to(AlgoState.COMPLETE, context)

    def fail_no_path(self, context: Optional[dict] = None) -> bool:
        return self.transition_to(AlgoState.NO_PATH, context)

    def cancel(self, context: Optional[dict] = None) -> bool:
        return self.transition_to(AlgoState.CANCELLED, context)

    def fail_error(self, context: Optional[dict] = None) -> bool:
        return self.transition_to(AlgoState.ERROR, context)

    def reset_to_idle(self, context: Optional[dict] = None) -> bool:
        """Reset to idle state; a no-op success when already idle."""
        if self.is_idle():
            return True
        return self.transition_to(AlgoState.IDLE, context)

    def get_state_description(self) -> str:
        """Get a human-readable description of the current state."""
        descriptions = {
            AlgoState.IDLE: "Ready to start",
            AlgoState.RUNNING: "Algorithm running",
            AlgoState.PAUSED: "Algorithm paused",
            AlgoState.COMPLETE: "Finished",
            AlgoState.NO_PATH: "No path found",
            AlgoState.CANCELLED: "Run cancelled",
            AlgoState.ERROR: "Error occurred",
        }
        return descriptions.get(self._current_state, "Unknown state")
