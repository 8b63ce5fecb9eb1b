"""
Tests for the message bus and the judge registration handler.
"""
import pytest

from tabulation.data_access.sql_store import SQLAlchemyStore
from tabulation.services.judge_registration import (
    JudgeRegistrationHandler,
    MessageBus,
    UserRegistered,
)


class TestMessageBus:

    @pytest.mark.asyncio
    async def test_delivers_to_subscribers_in_order(self):
        bus = MessageBus()
        received = []

        async def first(message):
            received.append(("first", message.user_id))

        async def second(message):
            received.append(("second", message.user_id))

        await bus.subscribe(UserRegistered, first)
        await bus.subscribe(UserRegistered, second)

        delivered = await bus.publish(UserRegistered(user_id=1, username="ana"))

        assert delivered == 2
        assert received == [("first", 1), ("second", 1)]

    @pytest.mark.asyncio
    async def test_no_subscribers(self):
        assert await MessageBus().publish(UserRegistered(user_id=1, username="ana")) == 0

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = MessageBus()
        received = []

        async def handler(message):
            received.append(message)

        await bus.subscribe(UserRegistered, handler)
        await bus.unsubscribe(UserRegistered, handler)
        await bus.publish(UserRegistered(user_id=1, username="ana"))

        assert received == []

    @pytest.mark.asyncio
    async def test_handler_errors_reach_publisher(self):
        bus = MessageBus()

        async def broken(message):
            raise RuntimeError("handler failed")

        await bus.subscribe(UserRegistered, broken)

        with pytest.raises(RuntimeError, match="handler failed"):
            await bus.publish(UserRegistered(user_id=1, username="ana"))


class TestJudgeRegistrationHandler:

    @pytest.mark.asyncio
    async def test_creates_and_links_judge(self, session_factory, event_factory, store):
        seeded = await event_factory(judge_names=[])
        bus = MessageBus()
        handler = JudgeRegistrationHandler(session_factory)
        await bus.subscribe(UserRegistered, handler)

        await bus.publish(UserRegistered(user_id=42, username="jdelacruz", event_id=seeded.event.id))

        event = await store.find_event(seeded.event.id)
        assert len(event.judges) == 1
        judge = event.judges[0]
        assert judge.name == "jdelacruz"
        assert judge.user_id == 42

    @pytest.mark.asyncio
    async def test_prefers_display_name(self, session_factory):
        handler = JudgeRegistrationHandler(session_factory)

        judge = await handler.handle(UserRegistered(user_id=7, username="mreyes", name="Maria Reyes"))

        assert judge.name == "Maria Reyes"

    @pytest.mark.asyncio
    async def test_unknown_event_still_creates_judge(self, session_factory):
        handler = JudgeRegistrationHandler(session_factory)

        judge = await handler.handle(UserRegistered(user_id=8, username="pgarcia", event_id=999))

        async with session_factory() as db:
            assert await SQLAlchemyStore(db).find_judge(judge.id) == judge

    @pytest.mark.asyncio
    async def test_linking_twice_is_harmless(self, session_factory, event_factory, store):
        seeded = await event_factory(judge_names=[])
        handler = JudgeRegistrationHandler(session_factory)
        judge = await handler.handle(UserRegistered(user_id=9, username="lsantos", event_id=seeded.event.id))

        await store.link_judge_to_event(judge.id, seeded.event.id)

        event = await store.find_event(seeded.event.id)
        assert [j.id for j in event.judges] == [judge.id]
