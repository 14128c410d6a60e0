"""
Polling of server-side tasks.

Mutations the server runs out-of-band answer with a Task document instead of
the entity. The task is polled until it reports "Finished" or the poll budget
runs out; a successful task may point at the entity it produced through its
"Related" link.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from .errors import VeeamTaskFailedError, VeeamTaskTimeoutError
from .models import Rel, Task
from .observability import log_event

if TYPE_CHECKING:
    from .client import VeeamClient

T = TypeVar("T", bound=BaseModel)

DEFAULT_POLL_BUDGET_SECONDS = 60.0
DEFAULT_POLL_INTERVAL_SECONDS = 1.0

log = logging.getLogger("veeam_cloud.tasks")


class TaskPoller:
    def __init__(
        self,
        client: "VeeamClient",
        *,
        budget_seconds: float = DEFAULT_POLL_BUDGET_SECONDS,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.budget_seconds = budget_seconds
        self.interval_seconds = interval_seconds
        self.sleep = sleep
        self.clock = clock

    async def await_task(self, response: httpx.Response) -> Task:
        """
        Resolve a submit response to a finished task.
        - 204 No Content is an immediate success, nothing is polled
        - Raises VeeamTaskTimeoutError when the budget runs out first
        - Raises VeeamTaskFailedError when the task finishes unsuccessfully
        """
        if response.status_code == 204:
            return Task.finished()

        task = self.client.decode_model(Task, response)
        task_uri = self.client.relative_uri(task.task_status_uri)

        deadline = self.clock() + self.budget_seconds
        waited = 0.0
        attempt = 0
        while True:
            remaining = min(self.budget_seconds - waited, deadline - self.clock())
            if attempt and remaining <= 0:
                raise VeeamTaskTimeoutError(task_uri, waited_seconds=waited)

            # The last delay is cut short so the final poll lands on the budget
            delay = max(0.0, min(attempt * self.interval_seconds, remaining))
            await self.sleep(delay)
            waited += delay

            task = await self.client.request_model(Task, "GET", task_uri, tool="task")
            log_event(
                "task_poll",
                log,
                level=logging.DEBUG,
                task=task_uri,
                attempt=attempt,
                state=task.state,
            )
            if task.is_finished:
                break
            attempt += 1

        if task.result is not None and not task.result.success:
            raise VeeamTaskFailedError(task.result.message or "", uri=task_uri)
        return task

    async def read_task(
        self, response: httpx.Response, model: Type[T]
    ) -> Optional[T]:
        """
        Wait for the task, then fetch the entity it points at as `model`.
        Returns None when the task carries no "Related" link.
        """
        task = await self.await_task(response)
        related = task.link_href(Rel.RELATED.value)
        if related is None:
            return None
        return await self.client.request_model(
            model, "GET", self.client.relative_uri(related), tool="task"
        )

    async def is_success(self, response: httpx.Response) -> bool:
        await self.await_task(response)
        return True


__all__ = [
    "TaskPoller",
    "DEFAULT_POLL_BUDGET_SECONDS",
    "DEFAULT_POLL_INTERVAL_SECONDS",
]
