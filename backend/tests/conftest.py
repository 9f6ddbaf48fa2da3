import asyncio

import pytest
from langchain_core.messages import AIMessage
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import AutoReconnect, ServerSelectionTimeoutError

from modelchat.db import MongoStore, Privilege
from modelchat.schemas.catalog import ModelInfo
from modelchat.services import MessageService, ResponseGenerator

GEMINI = ModelInfo(
    tag="gemini-2.0-flash-exp",
    name="Gemini 2.0 Flash",
    description="Google's experimental Gemini 2.0 Flash model",
)
GPT4O = ModelInfo(tag="gpt-4o", name="GPT-4o", description="OpenAI's flagship multimodal model")


def run(coro):
    return asyncio.run(coro)


class RecordingLLM:
    """Chat model stand-in that records every call and answers with fixed text."""

    def __init__(self, reply: str = "Hello from Gemini") -> None:
        self.reply = reply
        self.calls = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        return AIMessage(content=self.reply)


class FailingLLM:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc
        self.calls = 0

    async def ainvoke(self, messages):
        self.calls += 1
        raise self.exc


class HangingLLM:
    async def ainvoke(self, messages):
        await asyncio.sleep(10)


class FlakyCollection:
    """Wraps a collection; inserts of `fail_role` rows raise a store error."""

    def __init__(self, inner, fail_role: str) -> None:
        self._inner = inner
        self.fail_role = fail_role

    def __getattr__(self, name):
        return getattr(self._inner, name)

    async def insert_one(self, doc, *args, **kwargs):
        if doc.get("role") == self.fail_role:
            raise AutoReconnect("connection reset during insert")
        return await self._inner.insert_one(doc, *args, **kwargs)


class UnreachableCollection:
    """Every read raises as if the server could not be selected."""

    def find(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("No servers available")

    async def find_one(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("No servers available")

    async def insert_one(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("No servers available")


@pytest.fixture
def db():
    return AsyncMongoMockClient()["modelchat_test"]


@pytest.fixture
def store(db) -> MongoStore:
    s = MongoStore(db, Privilege.SERVICE)
    run(s.ensure_indexes())
    run(s.catalog.upsert_model(GEMINI))
    run(s.catalog.upsert_model(GPT4O))
    return s


@pytest.fixture
def make_service(store):
    def _make(llm=None, timeout_seconds: float = 5.0, catalog=None, conversations=None) -> MessageService:
        generator = ResponseGenerator(GEMINI.tag, llm, timeout_seconds)
        return MessageService(
            catalog or store.catalog,
            conversations or store.conversations,
            generator,
        )

    return _make
