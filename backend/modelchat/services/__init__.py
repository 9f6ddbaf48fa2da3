"""Application services: reply generation and the message pipeline."""
from modelchat.services.generator import ResponseGenerator, build_gemini_model
from modelchat.services.messages import (
    InvalidInput,
    MessageService,
    MessageServiceError,
    ModelNotFound,
    PersistenceFailed,
    StoreUnavailable,
)

__all__ = [
    "InvalidInput",
    "MessageService",
    "MessageServiceError",
    "ModelNotFound",
    "PersistenceFailed",
    "ResponseGenerator",
    "StoreUnavailable",
    "build_gemini_model",
]
