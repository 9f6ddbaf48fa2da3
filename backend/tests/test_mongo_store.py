from datetime import timezone

import pytest

from conftest import GEMINI, GPT4O, UnreachableCollection, run
from modelchat.db import (
    ChatDBError,
    ConversationStore,
    ModelCatalogStore,
    MongoStore,
    Privilege,
    StorePermissionError,
)
from modelchat.schemas.catalog import ModelInfo


def test_get_model_by_tag(store) -> None:
    assert run(store.catalog.get_model(GPT4O.tag)) == GPT4O
    assert run(store.catalog.get_model("missing")) is None


def test_upsert_updates_existing_tag(store) -> None:
    run(store.catalog.upsert_model(ModelInfo(tag=GPT4O.tag, name="GPT-4o (2024-08)")))

    models = run(store.catalog.list_models())

    assert [m.tag for m in models].count(GPT4O.tag) == 1
    assert run(store.catalog.get_model(GPT4O.tag)).name == "GPT-4o (2024-08)"


def test_anon_store_cannot_write_catalog(db) -> None:
    anon = MongoStore(db, Privilege.ANON)

    with pytest.raises(StorePermissionError):
        run(anon.catalog.upsert_model(GEMINI))

    assert run(anon.catalog.list_models()) == []


def test_insert_message_returns_stored_row(store) -> None:
    message = run(store.conversations.insert_message("u1", GEMINI.tag, "user", "Hello"))

    assert message.id
    assert message.created_at.tzinfo is not None
    assert message.created_at.utcoffset() == timezone.utc.utcoffset(None)
    (stored,) = run(store.conversations.list_messages("u1"))
    assert stored == message


def test_list_messages_breaks_timestamp_ties_by_insertion(store) -> None:
    for i in range(5):
        run(store.conversations.insert_message("u1", GPT4O.tag, "user", f"m{i}"))

    contents = [m.content for m in run(store.conversations.list_messages("u1"))]

    assert contents == ["m0", "m1", "m2", "m3", "m4"]


def test_read_errors_are_wrapped() -> None:
    with pytest.raises(ChatDBError):
        run(ModelCatalogStore(UnreachableCollection(), Privilege.ANON).list_models())
    with pytest.raises(ChatDBError):
        run(ModelCatalogStore(UnreachableCollection(), Privilege.ANON).get_model("gpt-4o"))
    with pytest.raises(ChatDBError):
        run(ConversationStore(UnreachableCollection()).list_messages("u1"))
    with pytest.raises(ChatDBError):
        run(ConversationStore(UnreachableCollection()).insert_message("u1", "gpt-4o", "user", "hi"))


def test_models_sorted_by_name_ignoring_case(store) -> None:
    run(store.catalog.upsert_model(ModelInfo(tag="gpt-4o-mini", name="gpt-4o mini")))

    names = [m.name for m in run(store.catalog.list_models())]

    assert names == ["Gemini 2.0 Flash", "GPT-4o", "gpt-4o mini"]


@pytest.mark.parametrize("row", [{"tag": "legacy", "name": ""}, {"tag": "legacy"}])
def test_malformed_catalog_rows_are_wrapped(db, row) -> None:
    run(db["models"].insert_one(dict(row)))
    catalog = ModelCatalogStore(db["models"], Privilege.ANON)

    with pytest.raises(ChatDBError, match="Malformed"):
        run(catalog.list_models())
    with pytest.raises(ChatDBError, match="Malformed"):
        run(catalog.get_model("legacy"))
