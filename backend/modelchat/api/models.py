"""Model catalog API routes."""
from fastapi import APIRouter, Depends

from modelchat.api.errors import get_message_service, raise_http_error
from modelchat.schemas.catalog import ModelsResponse
from modelchat.services.messages import MessageService, MessageServiceError

router = APIRouter()


@router.get("/", response_model=ModelsResponse)
async def list_models_endpoint(
    service: MessageService = Depends(get_message_service),
) -> ModelsResponse:
    """
    Return the selectable models sorted by name.
    Returns 503 if the catalog cannot be read.
    """
    try:
        models = await service.list_available_models()
    except MessageServiceError as e:
        raise_http_error(e)
    return ModelsResponse(models=models)
