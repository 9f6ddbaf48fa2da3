"""
Message pipeline: model catalog reads, conversation history, and the send sequence
(validate model -> save user turn -> generate reply -> save assistant turn).
"""
from __future__ import annotations

import logging
from enum import Enum

from modelchat.db.mongo import ChatDBError, ConversationStore, ModelCatalogStore
from modelchat.schemas.catalog import ModelInfo
from modelchat.schemas.chat import Message
from modelchat.services.generator import ResponseGenerator

logger = logging.getLogger(__name__)


class MessageServiceError(Exception):
    """Base class for pipeline errors; `kind` is the stable code shown to clients."""

    kind = "message_service_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(MessageServiceError):
    kind = "invalid_input"


class ModelNotFound(MessageServiceError):
    """The requested tag has no catalog row. Raised before any write."""

    kind = "model_not_found"

    def __init__(self, model_tag: str) -> None:
        super().__init__(f"Model {model_tag} not found")
        self.model_tag = model_tag


class PersistenceFailed(MessageServiceError):
    """A message insert failed. Earlier inserts of the same send stay durable."""

    kind = "persistence_failed"


class StoreUnavailable(MessageServiceError):
    """A catalog or history read failed."""

    kind = "store_unavailable"


class SendState(str, Enum):
    VALIDATING = "validating"
    USER_PERSISTED = "user_persisted"
    RESPONDING = "responding"
    COMPLETED = "completed"
    FAILED = "failed"


def _require(value: str, field: str) -> str:
    if value is None or not value.strip():
        raise InvalidInput(f"{field} must not be empty")
    return value


class MessageService:
    """Sole mediator of reads and writes against the catalog and conversation stores."""

    def __init__(
        self,
        catalog: ModelCatalogStore,
        conversations: ConversationStore,
        generator: ResponseGenerator,
    ) -> None:
        self._catalog = catalog
        self._conversations = conversations
        self._generator = generator

    async def list_available_models(self) -> list[ModelInfo]:
        try:
            models = await self._catalog.list_models()
        except ChatDBError as e:
            logger.error("Failed to fetch models: %s", e)
            raise StoreUnavailable(f"Failed to fetch models: {e}") from e
        logger.info("Models fetched: %d", len(models))
        return models

    async def get_history(self, user_id: str) -> list[Message]:
        _require(user_id, "user_id")
        try:
            messages = await self._conversations.list_messages(user_id)
        except ChatDBError as e:
            logger.error("Failed to fetch chat history for %s: %s", user_id, e)
            raise StoreUnavailable(f"Failed to fetch chat history: {e}") from e
        logger.info("Chat history fetched for %s: %d messages", user_id, len(messages))
        return messages

    async def send_message(self, user_id: str, model_tag: str, prompt: str) -> dict:
        """
        Run the send pipeline. Returns {"success": True}; callers re-fetch history.
        Raises InvalidInput, ModelNotFound, StoreUnavailable or PersistenceFailed.
        The user turn is not rolled back if saving the assistant turn fails.
        """
        _require(user_id, "user_id")
        _require(model_tag, "model_tag")
        _require(prompt, "prompt")

        state = SendState.VALIDATING
        logger.info("Sending message", extra={"user_id": user_id, "model_tag": model_tag})
        try:
            try:
                model = await self._catalog.get_model(model_tag)
            except ChatDBError as e:
                raise StoreUnavailable(f"Failed to look up model {model_tag}: {e}") from e
            if model is None:
                raise ModelNotFound(model_tag)

            try:
                await self._conversations.insert_message(user_id, model_tag, "user", prompt)
            except ChatDBError as e:
                raise PersistenceFailed(f"Failed to save user message: {e}") from e
            state = self._advance(state, SendState.USER_PERSISTED)

            state = self._advance(state, SendState.RESPONDING)
            reply = await self._generator.generate(model_tag, prompt, model.name)

            try:
                await self._conversations.insert_message(user_id, model_tag, "assistant", reply)
            except ChatDBError as e:
                raise PersistenceFailed(f"Failed to save AI response: {e}") from e
            self._advance(state, SendState.COMPLETED)
        except MessageServiceError as e:
            self._advance(state, SendState.FAILED)
            logger.error(
                "Send failed in state %s: %s (%s)", state.value, e.message, e.kind,
                extra={"user_id": user_id, "model_tag": model_tag},
            )
            raise

        logger.info("Message exchange completed successfully")
        return {"success": True}

    @staticmethod
    def _advance(current: SendState, nxt: SendState) -> SendState:
        logger.debug("Send state %s -> %s", current.value, nxt.value)
        return nxt
