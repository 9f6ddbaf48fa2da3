"""Chat API routes: conversation history and message sending."""
from fastapi import APIRouter, Depends, Query

from modelchat.api.errors import get_message_service, raise_http_error
from modelchat.schemas.chat import HistoryResponse, SendMessageRequest, SendMessageResponse
from modelchat.services.messages import MessageService, MessageServiceError

router = APIRouter()


@router.get("/history", response_model=HistoryResponse)
async def history_endpoint(
    user_id: str = Query(..., description="User whose conversation to return"),
    service: MessageService = Depends(get_message_service),
) -> HistoryResponse:
    """Return the user's messages, oldest first."""
    try:
        messages = await service.get_history(user_id)
    except MessageServiceError as e:
        raise_http_error(e)
    return HistoryResponse(messages=messages)


@router.post("/send", response_model=SendMessageResponse)
async def send_endpoint(
    body: SendMessageRequest,
    service: MessageService = Depends(get_message_service),
) -> SendMessageResponse:
    """
    Validate the model, save the prompt, generate a reply and save it.
    The response is only a success marker; fetch /history to see the new turns.
    Errors: 404 model_not_found, 422 invalid_input, 500 persistence_failed, 503 store_unavailable.
    """
    try:
        await service.send_message(body.user_id, body.model_tag, body.prompt)
    except MessageServiceError as e:
        raise_http_error(e)
    return SendMessageResponse(success=True)
