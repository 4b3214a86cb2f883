from __future__ import annotations

from enum import Enum
from typing import Callable

from ..errors import InteractionError


class InteractionState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    ROTATING = "rotating"


CameraListener = Callable[[bool], None]


class ManipulationStateMachine:
    """Three-state machine for object manipulation.

    Notes:
    - Drag and rotate can only start from IDLE, so they are mutually exclusive.
    - Camera controls are enabled exactly when the machine is IDLE. Listeners are
      called with the new `camera_enabled` value on every change.
    - `end()` always returns to IDLE; calling it while idle is a no-op.
    """

    def __init__(self) -> None:
        self._state = InteractionState.IDLE
        self._listeners: list[CameraListener] = []

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return self._state is InteractionState.IDLE

    @property
    def camera_enabled(self) -> bool:
        return self.is_idle

    def add_camera_listener(self, listener: CameraListener) -> None:
        self._listeners.append(listener)

    def _transition(self, new_state: InteractionState) -> None:
        was_enabled = self.camera_enabled
        self._state = new_state
        if self.camera_enabled != was_enabled:
            for listener in list(self._listeners):
                listener(self.camera_enabled)

    def begin_drag(self) -> None:
        if not self.is_idle:
            raise InteractionError(f"Cannot start dragging while {self._state.value}")
        self._transition(InteractionState.DRAGGING)

    def begin_rotate(self) -> None:
        if not self.is_idle:
            raise InteractionError(f"Cannot start rotating while {self._state.value}")
        self._transition(InteractionState.ROTATING)

    def end(self) -> InteractionState:
        """Return to IDLE and report which state was left."""

        previous = self._state
        if previous is not InteractionState.IDLE:
            self._transition(InteractionState.IDLE)
        return previous
