"""MongoDB access for the chat application. Two collections:

- models: the model catalog (tag, name, description), unique on tag; written only by
  administrative seeding with service privilege
- messages: append-only conversation turns (user_id, model_tag, role, content, created_at)

A single store capability is opened per process with a privilege level. The service URI
is used when configured, otherwise the anon URI. Catalog writes need service privilege.
"""
import logging
from datetime import datetime, timezone
from enum import Enum

from motor.motor_asyncio import AsyncIOMotorClient
from pydantic import ValidationError
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from modelchat.schemas.catalog import ModelInfo
from modelchat.schemas.chat import Message, Role

logger = logging.getLogger(__name__)


class ChatDBError(Exception):
    """Raised when a MongoDB operation fails (connection, timeout, or write error)."""
    pass


class DuplicateTagError(ChatDBError):
    """Raised when a catalog write collides with an existing model tag."""
    pass


class StorePermissionError(ChatDBError):
    """Raised when an operation needs a higher privilege than the store was opened with."""
    pass


class Privilege(str, Enum):
    ANON = "anon"
    SERVICE = "service"


# collection names
COLLECTION_MODELS = "models"
COLLECTION_MESSAGES = "messages"


def _utcnow() -> datetime:
    # BSON dates keep millisecond precision; truncate so returned rows match stored ones
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _message_from_doc(doc: dict) -> Message:
    return Message(
        id=str(doc["_id"]),
        user_id=doc["user_id"],
        model_tag=doc["model_tag"],
        role=doc["role"],
        content=doc["content"],
        created_at=_as_utc(doc["created_at"]),
    )


class ModelCatalogStore:
    """Read access to the `models` collection, plus privileged upserts for seeding."""

    def __init__(self, collection, privilege: Privilege) -> None:
        self._collection = collection
        self.privilege = privilege

    async def list_models(self) -> list[ModelInfo]:
        """Return every model sorted by name, ignoring case."""
        try:
            docs = await self._collection.find({}, {"_id": 0}).to_list(length=None)
            models = [ModelInfo.model_validate(d) for d in docs]
        except PyMongoError as e:
            raise ChatDBError(f"Failed to list models: {e}") from e
        except ValidationError as e:
            raise ChatDBError(f"Malformed model row in catalog: {e}") from e
        return sorted(models, key=lambda m: (m.name.casefold(), m.name))

    async def get_model(self, tag: str) -> ModelInfo | None:
        """Return the model with this tag, or None."""
        try:
            doc = await self._collection.find_one({"tag": tag}, {"_id": 0})
        except PyMongoError as e:
            raise ChatDBError(f"Failed to look up model {tag!r}: {e}") from e
        if doc is None:
            return None
        try:
            return ModelInfo.model_validate(doc)
        except ValidationError as e:
            raise ChatDBError(f"Malformed catalog row for model {tag!r}: {e}") from e

    async def upsert_model(self, model: ModelInfo) -> None:
        """Create or update a catalog row by tag. Requires service privilege."""
        if self.privilege is not Privilege.SERVICE:
            raise StorePermissionError(
                f"Catalog writes need {Privilege.SERVICE.value} privilege, store opened as {self.privilege.value}"
            )
        try:
            await self._collection.update_one(
                {"tag": model.tag},
                {"$set": model.model_dump(mode="json")},
                upsert=True,
            )
        except DuplicateKeyError as e:
            raise DuplicateTagError(f"Model tag '{model.tag}' already exists") from e
        except PyMongoError as e:
            raise ChatDBError(f"Failed to store model {model.tag!r}: {e}") from e


class ConversationStore:
    """Append-only access to the `messages` collection."""

    def __init__(self, collection) -> None:
        self._collection = collection

    async def list_messages(self, user_id: str) -> list[Message]:
        """Return the user's messages, oldest first. Insertion order breaks timestamp ties."""
        try:
            cursor = self._collection.find({"user_id": user_id}).sort(
                [("created_at", ASCENDING), ("_id", ASCENDING)]
            )
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise ChatDBError(f"Failed to fetch messages for user {user_id!r}: {e}") from e
        return [_message_from_doc(d) for d in docs]

    async def insert_message(self, user_id: str, model_tag: str, role: Role, content: str) -> Message:
        """Insert one immutable message stamped with the current time and return it."""
        doc = {
            "user_id": user_id,
            "model_tag": model_tag,
            "role": role,
            "content": content,
            "created_at": _utcnow(),
        }
        try:
            result = await self._collection.insert_one(doc)
        except PyMongoError as e:
            raise ChatDBError(f"Failed to save {role} message: {e}") from e
        doc["_id"] = result.inserted_id
        return _message_from_doc(doc)


class MongoStore:
    """Database handle opened once per process at a given privilege level."""

    def __init__(self, db, privilege: Privilege, client: AsyncIOMotorClient | None = None) -> None:
        self._client = client
        self._db = db
        self.privilege = privilege
        self.catalog = ModelCatalogStore(db[COLLECTION_MODELS], privilege)
        self.conversations = ConversationStore(db[COLLECTION_MESSAGES])

    @classmethod
    async def connect(cls, uri: str, database: str, privilege: Privilege) -> "MongoStore":
        """Connect to MongoDB and ensure indexes. Call once at app startup."""
        client = AsyncIOMotorClient(uri, serverSelectionTimeoutMS=5000, tz_aware=True)
        try:
            await client.admin.command("ping")
            store = cls(client[database], privilege, client=client)
            await store.ensure_indexes()
        except PyMongoError as e:
            client.close()
            raise ChatDBError(f"MongoDB connection or init failed: {e}") from e
        logger.info("Connected to MongoDB database %s as %s", database, privilege.value)
        return store

    async def ensure_indexes(self) -> None:
        try:
            await self._db[COLLECTION_MODELS].create_index([("tag", ASCENDING)], unique=True)
            await self._db[COLLECTION_MESSAGES].create_index(
                [("user_id", ASCENDING), ("created_at", ASCENDING)]
            )
        except PyMongoError as e:
            raise ChatDBError(f"Failed to create indexes: {e}") from e

    def close(self) -> None:
        """Close the MongoDB connection. Call at app shutdown."""
        if self._client is not None:
            self._client.close()
            self._client = None


async def open_store(settings) -> MongoStore:
    """Open the store with service privilege when a service URI is configured, anon otherwise."""
    if settings.mongodb_service_uri:
        return await MongoStore.connect(
            settings.mongodb_service_uri, settings.mongodb_database, Privilege.SERVICE
        )
    logger.info("MONGODB_SERVICE_URI not set, using anon store access")
    return await MongoStore.connect(settings.mongodb_uri, settings.mongodb_database, Privilege.ANON)
