"""
Judge Registration

In-process message bus and the handler that turns a newly registered user
account into a judge. The scoring engine never depends on this module; the
application wires it at startup.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Type

from tabulation.data_access.sql_store import SQLAlchemyStore
from tabulation.models.snapshots import JudgeSnapshot

logger = logging.getLogger(__name__)


@dataclass
class UserRegistered:
    """Published when a user account has been created."""
    user_id: int
    username: str
    name: Optional[str] = None
    event_id: Optional[int] = None


Handler = Callable[[object], Awaitable[None]]


class MessageBus:
    """
    Minimal publish/subscribe bus keyed by message type.

    Handlers run in subscription order and are awaited by ``publish``; an
    exception raised by a handler reaches the publisher.
    """

    def __init__(self):
        self._handlers: Dict[Type, List[Handler]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, message_type: Type, handler: Handler) -> None:
        async with self._lock:
            self._handlers.setdefault(message_type, []).append(handler)

    async def unsubscribe(self, message_type: Type, handler: Handler) -> None:
        async with self._lock:
            handlers = self._handlers.get(message_type, [])
            if handler in handlers:
                handlers.remove(handler)

    async def publish(self, message: object) -> int:
        """Deliver ``message`` to its subscribers. Returns how many handlers ran."""
        async with self._lock:
            # Copy to avoid modification during delivery
            handlers = list(self._handlers.get(type(message), []))

        for handler in handlers:
            await handler(message)
        return len(handlers)

    async def close(self) -> None:
        async with self._lock:
            self._handlers.clear()


class JudgeRegistrationHandler:
    """
    Creates a judge for each registered user.

    The judge is named after the user's display name, falling back to the
    username, and is assigned to ``event_id`` when the message carries one.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def __call__(self, message: UserRegistered) -> None:
        await self.handle(message)

    async def handle(self, message: UserRegistered) -> JudgeSnapshot:
        async with self.session_factory() as db:
            store = SQLAlchemyStore(db)
            judge = await store.create_judge(
                name=message.name or message.username,
                user_id=message.user_id,
            )
            logger.info(f"[JUDGE REGISTERED] Judge {judge.id} for user {message.user_id}")

            if message.event_id is not None:
                event = await store.find_event(
                    message.event_id,
                    with_segments=False,
                    with_participants=False,
                    with_judges=False
                )
                if event:
                    await store.link_judge_to_event(judge.id, event.id)
                    logger.info(f"Judge {judge.id} assigned to event {event.id}")
                else:
                    logger.warning(
                        f"Judge {judge.id} not assigned: event {message.event_id} not found"
                    )

        return judge


# Application-wide bus
message_bus = MessageBus()
