"""
Chat client for the backend API: an httpx wrapper plus a view-independent controller
that enforces the send rules (model selected, prompt not blank, one send in flight)
and refreshes history after every successful send.
"""
from __future__ import annotations

import logging
from typing import Callable

import httpx

logger = logging.getLogger(__name__)

# Human-readable text for each error kind the backend (or transport) can report
ERROR_MESSAGES = {
    "model_not_found": "The selected model is not available. Pick another model.",
    "persistence_failed": "Your message could not be saved. Please try sending it again.",
    "store_unavailable": "The chat service is unavailable right now. Use Retry to try again.",
    "invalid_input": "Enter a user id, select a model and type a message.",
    "network_error": "Could not reach the chat service.",
    "send_in_progress": "Wait for the current message to finish.",
}


def describe_error(kind: str, detail: str | None = None) -> str:
    text = ERROR_MESSAGES.get(kind, "Something went wrong.")
    if detail:
        return f"{text} ({detail})"
    return text


class ChatApiError(Exception):
    """Error reported by the chat API, identified by `kind`."""

    def __init__(self, kind: str, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    def describe(self) -> str:
        return describe_error(self.kind, self.message)


def _error_from_response(response: httpx.Response) -> ChatApiError:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    if isinstance(detail, dict) and detail.get("kind"):
        return ChatApiError(detail["kind"], detail.get("message") or "", response.status_code)
    if response.status_code == 422:
        return ChatApiError("invalid_input", str(detail or response.text)[:200], 422)
    if response.status_code == 404:
        return ChatApiError("model_not_found", str(detail or response.text)[:200], 404)
    if response.status_code >= 500:
        return ChatApiError("store_unavailable", str(detail or response.text)[:200], response.status_code)
    return ChatApiError("network_error", str(detail or response.text)[:200], response.status_code)


class ChatApiClient:
    """Thin async client for /api/models and /api/chat."""

    def __init__(
        self,
        api_base: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            async with httpx.AsyncClient(
                base_url=self.api_base, timeout=self.timeout, transport=self._transport
            ) as client:
                r = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ChatApiError("network_error", str(e) or type(e).__name__) from e
        if r.is_error:
            raise _error_from_response(r)
        return r.json()

    async def list_models(self) -> list[dict]:
        data = await self._request("GET", "/api/models/")
        return data.get("models", [])

    async def get_history(self, user_id: str) -> list[dict]:
        data = await self._request("GET", "/api/chat/history", params={"user_id": user_id})
        return data.get("messages", [])

    async def send_message(self, user_id: str, model_tag: str, prompt: str) -> None:
        await self._request(
            "POST",
            "/api/chat/send",
            json={"user_id": user_id, "model_tag": model_tag, "prompt": prompt},
        )


class ChatController:
    """
    Client-side state for one chat view. Subscribers are called after every state change;
    history is always re-fetched after a send instead of being read from the send response.
    """

    def __init__(self, api: ChatApiClient, user_id: str = "") -> None:
        self.api = api
        self.user_id = user_id
        self.models: list[dict] = []
        self.messages: list[dict] = []
        self.selected_model: str | None = None
        self.sending = False
        self.error: str | None = None
        self.error_kind: str | None = None
        self._subscribers: list[Callable[[], None]] = []

    def subscribe(self, callback: Callable[[], None]) -> None:
        self._subscribers.append(callback)

    def _notify(self) -> None:
        for callback in self._subscribers:
            callback()

    def _set_error(self, exc: ChatApiError | None) -> None:
        if exc is None:
            self.error = None
            self.error_kind = None
        else:
            self.error = exc.describe()
            self.error_kind = exc.kind

    def select_model(self, tag: str | None) -> None:
        self.selected_model = tag or None
        self._notify()

    def set_user(self, user_id: str) -> None:
        self.user_id = (user_id or "").strip()
        self._notify()

    def can_send(self, prompt: str) -> bool:
        return (
            not self.sending
            and bool(self.user_id)
            and bool(self.selected_model)
            and bool((prompt or "").strip())
        )

    async def load_models(self) -> None:
        try:
            self.models = await self.api.list_models()
        except ChatApiError as e:
            logger.warning("Loading models failed: %s", e)
            self._set_error(e)
        else:
            tags = [m.get("tag") for m in self.models]
            if self.selected_model not in tags:
                self.selected_model = tags[0] if tags else None
            self._set_error(None)
        self._notify()

    async def refresh_history(self) -> None:
        if not self.user_id:
            self.messages = []
            self._notify()
            return
        try:
            self.messages = await self.api.get_history(self.user_id)
        except ChatApiError as e:
            logger.warning("Loading history failed: %s", e)
            self._set_error(e)
        else:
            self._set_error(None)
        self._notify()

    async def send(self, prompt: str) -> bool:
        """Send the prompt with the selected model. Returns True when it was sent and history reloaded."""
        if self.sending:
            self._set_error(ChatApiError("send_in_progress", ""))
            self._notify()
            return False
        if not self.can_send(prompt):
            self._set_error(ChatApiError("invalid_input", ""))
            self._notify()
            return False

        self.sending = True
        self._set_error(None)
        self._notify()
        failure: ChatApiError | None = None
        try:
            await self.api.send_message(self.user_id, self.selected_model, prompt.strip())
        except ChatApiError as e:
            logger.warning("Send failed: %s (%s)", e.message, e.kind)
            failure = e
        finally:
            self.sending = False

        # Re-fetch even on failure: the user turn may have been saved before the error
        await self.refresh_history()
        if failure is not None:
            self._set_error(failure)
            self._notify()
            return False
        return True
