"""MongoDB connection and access to the model catalog and conversation collections."""
from modelchat.db.mongo import (
    ChatDBError,
    ConversationStore,
    DuplicateTagError,
    ModelCatalogStore,
    MongoStore,
    Privilege,
    StorePermissionError,
    open_store,
)

__all__ = [
    "ChatDBError",
    "ConversationStore",
    "DuplicateTagError",
    "ModelCatalogStore",
    "MongoStore",
    "Privilege",
    "StorePermissionError",
    "open_store",
]
