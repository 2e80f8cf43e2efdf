"""Registry of per-thread graph handles and their interruption flags"""
import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..core.errors import ConstructionError

logger = logging.getLogger(__name__)


@dataclass
class ThreadState:
    """Graph handle owned by one conversation thread"""
    thread_id: str
    graph: Any
    interrupted: bool = False
    busy: bool = False
    last_used: float = field(default_factory=time.monotonic)

    def touch(self) -> None:
        self.last_used = time.monotonic()

    def idle_seconds(self, now: Optional[float] = None) -> float:
        return (now if now is not None else time.monotonic()) - self.last_used


class ThreadRegistry:
    """Maps thread ids to ThreadState.

    Graph construction for a thread id happens at most once: concurrent first
    calls for the same id wait on the registry lock and get the same state.
    """

    def __init__(self, max_idle_seconds: Optional[float] = None, cleanup_interval: float = 300.0):
        self._threads: Dict[str, ThreadState] = {}
        self._lock = threading.Lock()
        self.max_idle_seconds = max_idle_seconds
        self.cleanup_interval = cleanup_interval
        self._cleanup_task: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._threads)

    def get(self, thread_id: str) -> Optional[ThreadState]:
        return self._threads.get(thread_id)

    def get_or_create(self, thread_id: str, factory: Callable[[], Any]) -> ThreadState:
        """Return the thread's state, building its graph with ``factory`` if absent"""
        state = self._threads.get(thread_id)
        if state is not None:
            return state

        with self._lock:
            state = self._threads.get(thread_id)
            if state is None:
                try:
                    graph = factory()
                except Exception as e:
                    raise ConstructionError(thread_id) from e
                state = ThreadState(thread_id=thread_id, graph=graph)
                self._threads[thread_id] = state
                logger.debug(f"Built graph for thread {thread_id}")
            return state

    def set_interrupted(self, thread_id: str, interrupted: bool) -> None:
        state = self._threads.get(thread_id)
        if state is None:
            raise KeyError(thread_id)
        state.interrupted = interrupted
        state.touch()

    def evict(self, thread_id: str) -> bool:
        """Drop a thread; returns False when it was not registered"""
        with self._lock:
            removed = self._threads.pop(thread_id, None)
        if removed is not None:
            logger.debug(f"Evicted thread {thread_id}")
        return removed is not None

    def evict_idle(self, max_idle_seconds: float, now: Optional[float] = None) -> List[str]:
        """Evict threads idle longer than ``max_idle_seconds``.

        Busy threads and threads suspended awaiting approval are kept.
        """
        now = now if now is not None else time.monotonic()
        with self._lock:
            expired = [
                thread_id
                for thread_id, state in self._threads.items()
                if not state.busy
                and not state.interrupted
                and state.idle_seconds(now) > max_idle_seconds
            ]
            for thread_id in expired:
                del self._threads[thread_id]
        return expired

    async def start_cleanup_task(self) -> None:
        """Start background eviction of idle threads"""
        if self.max_idle_seconds is None:
            return
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._cleanup_idle_threads())

    async def stop_cleanup_task(self) -> None:
        """Stop background eviction"""
        if self._cleanup_task and not self._cleanup_task.done():
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass

    async def _cleanup_idle_threads(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.cleanup_interval)
                for thread_id in self.evict_idle(self.max_idle_seconds):
                    logger.info(f"Cleaned up idle thread {thread_id}")
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in thread cleanup task: {e}")
