# scheduler.py
"""
Per-frame callback scheduling.

The FrameScheduler plays the role of a browser's animation-frame queue:
callers register a callback for the next frame and get back a handle that
can be cancelled until the frame is dispatched. Callbacks registered while
a frame is being dispatched run on the following frame, so a callback that
re-registers itself advances exactly once per frame.
"""
import logging
from typing import Callable, Dict, Optional

import pygame

# --- Data Contracts ---
#
# class FrameScheduler:
#   - request_frame(self, callback: Callable[[int], None]) -> int:
#     - Outputs: A positive handle, unique for the scheduler's lifetime.
#     - Side Effects: Queues the callback for the next dispatch().
#
#   - cancel_frame(self, handle: int) -> bool:
#     - Outputs: True if a pending callback was revoked.
#
#   - dispatch(self) -> int:
#     - Side Effects: Advances the frame counter and runs every callback that
#       was pending when the call started, in registration order. The frame
#       number is passed to each callback.
#     - Outputs: The number of callbacks run.
#
#   - wait(self) -> float:
#     - Side Effects: Sleeps to hold the configured frame rate (pygame clock).
#     - Outputs: Milliseconds since the previous wait().


class FrameScheduler:
    """
    A cooperative, single-threaded frame callback queue paced by pygame's clock.
    """
    def __init__(self, fps: int, clock: Optional["pygame.time.Clock"] = None):
        if fps <= 0:
            msg = f"Configuration error: fps must be positive, got {fps}."
            logging.critical(msg)
            raise ValueError(msg)
        self.fps = fps
        self.clock = clock if clock is not None else pygame.time.Clock()
        self.frame = 0
        self._next_handle = 1
        self._pending: Dict[int, Callable[[int], None]] = {}

    def request_frame(self, callback: Callable[[int], None]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> bool:
        return self._pending.pop(handle, None) is not None

    @property
    def pending(self) -> int:
        return len(self._pending)

    def dispatch(self) -> int:
        """Runs the callbacks queued for this frame."""
        self.frame += 1
        due = self._pending
        self._pending = {}
        for callback in due.values():
            callback(self.frame)
        return len(due)

    def wait(self) -> float:
        return self.clock.tick(self.fps)
