# career_assessment/core/timer.py
import asyncio
import logging
from typing import Callable, Optional

from .config import config

logger = logging.getLogger(__name__)

class QuestionTimer:
    """Per-question countdown owned by a session.

    Runs as an asyncio task on the service event loop, so expiry is
    serialized with request handlers. The countdown only moves while
    resumed; a paused timer keeps its remaining time.
    """

    def __init__(self, on_expire: Callable[[], None], duration: int = None,
                 interval: float = None):
        self.duration = duration if duration is not None else config.QUESTION_TIME_LIMIT
        self.interval = interval if interval is not None else config.TIMER_INTERVAL_SECONDS
        self.remaining = self.duration
        self._on_expire = on_expire
        self._paused = True
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def resume(self):
        """Let the countdown move; starts the background task when a loop is running"""
        if self._cancelled:
            return
        self._paused = False
        if self.running:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the owner drives the countdown through tick()
            return
        self._task = loop.create_task(self._run())

    def pause(self):
        self._paused = True

    def reset(self):
        """Full time again, counted from now"""
        self.remaining = self.duration
        if not self.running:
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if self._task is current:
            # Expiry inside the countdown task; its next sleep already starts fresh
            return
        self._task.cancel()
        self._task = None
        if not self._paused:
            self.resume()

    def tick(self):
        """Advance the countdown by one unit"""
        if self._paused or self._cancelled:
            return
        self.remaining -= 1
        if self.remaining <= 0:
            self.remaining = self.duration
            logger.debug("⏰ Question timer expired")
            self._on_expire()

    def cancel(self):
        """Release the timer for good"""
        self._cancelled = True
        self._paused = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self):
        while not self._cancelled:
            await asyncio.sleep(self.interval)
            try:
                self.tick()
            except Exception as e:
                logger.error(f"❌ Timer expiry handler failed: {e}", exc_info=True)
