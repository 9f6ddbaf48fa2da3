import asyncio

import httpx
import pytest
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import AutoReconnect

from client import ChatApiClient, ChatApiError, ChatController, describe_error
from modelchat.db import ConversationStore, MongoStore, Privilege
from modelchat.main import create_app
from modelchat.schemas.catalog import ModelInfo
from modelchat.services import MessageService, ResponseGenerator


def run(coro):
    return asyncio.run(coro)


class FailingAssistantInserts:
    def __init__(self, inner) -> None:
        self._inner = inner

    def __getattr__(self, name):
        return getattr(self._inner, name)

    async def insert_one(self, doc, *args, **kwargs):
        if doc.get("role") == "assistant":
            raise AutoReconnect("connection reset during insert")
        return await self._inner.insert_one(doc, *args, **kwargs)


def _backend(fail_assistant: bool = False) -> httpx.ASGITransport:
    db = AsyncMongoMockClient()["modelchat_client_test"]
    store = MongoStore(db, Privilege.SERVICE)
    run(store.catalog.upsert_model(ModelInfo(tag="gpt-4o", name="GPT-4o")))
    run(store.catalog.upsert_model(ModelInfo(tag="claude-3-haiku", name="Claude 3 Haiku")))
    conversations = store.conversations
    if fail_assistant:
        conversations = ConversationStore(FailingAssistantInserts(db["messages"]))
    service = MessageService(store.catalog, conversations, ResponseGenerator("gemini-2.0-flash-exp"))
    return httpx.ASGITransport(app=create_app(service))


@pytest.fixture
def controller() -> ChatController:
    api = ChatApiClient("http://testserver", transport=_backend())
    return ChatController(api, user_id="u1")


def test_load_models_selects_first(controller) -> None:
    run(controller.load_models())

    assert [m["tag"] for m in controller.models] == ["claude-3-haiku", "gpt-4o"]
    assert controller.selected_model == "claude-3-haiku"
    assert controller.error is None


def test_send_refreshes_history(controller) -> None:
    notified = []
    controller.subscribe(lambda: notified.append(controller.sending))
    run(controller.load_models())
    controller.select_model("gpt-4o")

    assert run(controller.send("  Explain recursion  ")) is True

    assert [m["role"] for m in controller.messages] == ["user", "assistant"]
    assert controller.messages[0]["content"] == "Explain recursion"
    assert "GPT-4o" in controller.messages[1]["content"]
    assert controller.sending is False
    assert True in notified


def test_send_requires_model_and_prompt() -> None:
    calls = []

    class RecordingApi:
        async def send_message(self, *args):
            calls.append(args)

    controller = ChatController(RecordingApi(), user_id="u1")

    assert run(controller.send("hello")) is False
    assert controller.error_kind == "invalid_input"
    controller.select_model("gpt-4o")
    assert run(controller.send("   ")) is False
    controller.set_user("")
    assert run(controller.send("hello")) is False
    assert calls == []


def test_second_send_refused_while_in_flight() -> None:
    class SlowApi:
        def __init__(self) -> None:
            self.sent = []

        async def send_message(self, user_id, model_tag, prompt):
            self.sent.append(prompt)
            await asyncio.sleep(0.05)

        async def get_history(self, user_id):
            return []

    api = SlowApi()
    controller = ChatController(api, user_id="u1")
    controller.select_model("gpt-4o")

    async def scenario():
        first = asyncio.create_task(controller.send("one"))
        await asyncio.sleep(0)
        second = await controller.send("two")
        return await first, second

    first, second = run(scenario())

    assert first is True
    assert second is False
    assert api.sent == ["one"]


def test_unknown_model_error_is_surfaced(controller) -> None:
    controller.select_model("nonexistent-tag")

    assert run(controller.send("hi")) is False

    assert controller.error_kind == "model_not_found"
    assert controller.error.startswith(describe_error("model_not_found"))
    assert controller.sending is False
    assert controller.messages == []


def test_dangling_user_turn_is_shown_after_failure() -> None:
    api = ChatApiClient("http://testserver", transport=_backend(fail_assistant=True))
    controller = ChatController(api, user_id="u1")
    controller.select_model("gpt-4o")

    assert run(controller.send("Hello")) is False

    assert controller.error_kind == "persistence_failed"
    assert [m["role"] for m in controller.messages] == ["user"]


def test_network_error_kind() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    api = ChatApiClient("http://testserver", transport=httpx.MockTransport(refuse))

    with pytest.raises(ChatApiError) as exc_info:
        run(api.list_models())

    assert exc_info.value.kind == "network_error"
    assert "connection refused" in exc_info.value.describe()


def test_each_kind_has_distinct_message() -> None:
    kinds = ["model_not_found", "persistence_failed", "store_unavailable", "invalid_input", "network_error"]

    assert len({describe_error(k) for k in kinds}) == len(kinds)
