"""
FrameScheduler — drives one callback per display frame on the asyncio loop.

The callback (plain or async) receives the measured frame delta in seconds,
clamped, and runs to completion before the next frame is scheduled; frames
never overlap.
"""

import asyncio
import inspect
import time
from typing import Awaitable, Callable, Optional, Union


TARGET_FPS = 60
MAX_FRAME_DT = 0.05   # clamp to avoid spiral-of-death after a stall


class FrameScheduler:
    """Start/stop wrapper around a paint-cadence game loop task."""

    def __init__(self, callback: Callable[[float], Union[None, Awaitable[None]]], fps: int = TARGET_FPS):
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self.callback = callback
        self.frame_dt = 1.0 / fps
        self.frame_count = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Schedule the loop on the running event loop (idempotent)."""
        if self.running:
            return self._task
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    def stop(self) -> None:
        """Cancel the pending frame synchronously; the callback never runs again."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        last_time = time.perf_counter()
        while True:
            now = time.perf_counter()
            dt = min(now - last_time, MAX_FRAME_DT)
            last_time = now

            try:
                result = self.callback(dt)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                # Log and keep the loop running
                print(f"[TICK] frame callback failed: {exc!r}")
            self.frame_count += 1

            # Sleep to maintain target FPS
            elapsed = time.perf_counter() - now
            sleep_time = self.frame_dt - elapsed
            await asyncio.sleep(sleep_time if sleep_time > 0 else 0)
