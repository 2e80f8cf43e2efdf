"""Retry-then-fallback invocation across an ordered list of chat models.

On a transient failure (broken pipe, connection refused, timeout) the same
model is retried once after ``retry_delay`` seconds; when the retry fails too,
the next model in the chain is tried. Permanent failures (401, 403, bad
request) skip the retry and go straight to the next model. Once the chain is
exhausted the last real error propagates unchanged.

``astream`` and ``ainvoke`` wait with ``asyncio.sleep`` so the event loop is
never blocked; ``invoke`` is blocking by contract and sleeps the calling thread.
"""
import asyncio
import logging
import time
from typing import Any, AsyncIterator, Optional, Sequence

from .error_classifier import is_transient

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY = 1.0


class FallbackModelChain:
    """Chat-model facade that walks an ordered list of LangChain chat models"""

    def __init__(self, models: Optional[Sequence[Any]], retry_delay: float = DEFAULT_RETRY_DELAY):
        if models is None:
            raise ValueError("Model list must not be None")
        if len(models) == 0:
            raise ValueError("Model list must not be empty")
        self.models = list(models)
        self.retry_delay = retry_delay

    def __len__(self) -> int:
        return len(self.models)

    def bind_tools(self, tools: Sequence[Any], **kwargs) -> "FallbackModelChain":
        """Return a new chain whose every backend has ``tools`` bound"""
        return FallbackModelChain(
            [model.bind_tools(tools, **kwargs) for model in self.models],
            retry_delay=self.retry_delay,
        )

    def _has_next(self, index: int) -> bool:
        return index + 1 < len(self.models)

    def _should_retry(self, error: Exception, index: int, mode: str) -> bool:
        """Decide what follows a first-attempt failure.

        Returns True to retry the same model, False to move to the next one,
        and re-raises when a permanent error hits the last model.
        """
        if is_transient(error):
            logger.warning(
                f"Transient error from model at index {index} during {mode}(): {error}. "
                f"Retrying after {int(self.retry_delay * 1000)}ms..."
            )
            return True

        if not self._has_next(index):
            logger.warning(
                f"Non-transient error from model at index {index} and no more models. Propagating: {error}"
            )
            raise error
        logger.warning(f"Non-transient error from model at index {index}: {error}. Trying next model...")
        return False

    def _after_failed_retry(self, retry_error: Exception, index: int) -> None:
        # A failed retry is not re-classified; it always moves down the chain.
        if not self._has_next(index):
            logger.warning(f"All models exhausted after retry at index {index}. Propagating last error.")
            raise retry_error
        logger.warning(f"Retry also failed for model at index {index}: {retry_error}. Trying next model...")

    async def astream(self, prompt: Any, config: Any = None, **kwargs) -> AsyncIterator[Any]:
        """Stream chunks from the first model that succeeds.

        Chunks already yielded by a model that later fails are not retracted.
        """
        for index, model in enumerate(self.models):
            logger.debug(f"Attempting astream() with model at index {index} ({type(model).__name__})")
            try:
                async for chunk in model.astream(prompt, config=config, **kwargs):
                    yield chunk
                return
            except Exception as error:
                if not self._should_retry(error, index, "astream"):
                    continue

            await asyncio.sleep(self.retry_delay)
            logger.debug(f"Retrying astream() with model at index {index}")
            try:
                async for chunk in model.astream(prompt, config=config, **kwargs):
                    yield chunk
                return
            except Exception as retry_error:
                self._after_failed_retry(retry_error, index)

    async def ainvoke(self, prompt: Any, config: Any = None, **kwargs) -> Any:
        """Single response from the first model that succeeds (non-blocking waits)"""
        for index, model in enumerate(self.models):
            logger.debug(f"Attempting ainvoke() with model at index {index} ({type(model).__name__})")
            try:
                return await model.ainvoke(prompt, config=config, **kwargs)
            except Exception as error:
                if not self._should_retry(error, index, "ainvoke"):
                    continue

            await asyncio.sleep(self.retry_delay)
            logger.debug(f"Retrying ainvoke() with model at index {index}")
            try:
                return await model.ainvoke(prompt, config=config, **kwargs)
            except Exception as retry_error:
                self._after_failed_retry(retry_error, index)

    def invoke(self, prompt: Any, config: Any = None, **kwargs) -> Any:
        """Single response from the first model that succeeds.

        Blocking by contract: the retry backoff blocks the calling thread.
        """
        for index, model in enumerate(self.models):
            logger.debug(f"Attempting invoke() with model at index {index} ({type(model).__name__})")
            try:
                return model.invoke(prompt, config=config, **kwargs)
            except Exception as error:
                if not self._should_retry(error, index, "invoke"):
                    continue

            time.sleep(self.retry_delay)
            logger.debug(f"Retrying invoke() with model at index {index}")
            try:
                return model.invoke(prompt, config=config, **kwargs)
            except Exception as retry_error:
                self._after_failed_retry(retry_error, index)
