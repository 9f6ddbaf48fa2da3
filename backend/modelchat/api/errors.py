from fastapi import HTTPException, Request

from modelchat.schemas.chat import ErrorDetail
from modelchat.services.messages import (
    InvalidInput,
    MessageService,
    MessageServiceError,
    ModelNotFound,
    PersistenceFailed,
    StoreUnavailable,
)

_STATUS_BY_ERROR = {
    InvalidInput: 422,
    ModelNotFound: 404,
    PersistenceFailed: 500,
    StoreUnavailable: 503,
}


def get_message_service(request: Request) -> MessageService:
    """Service built in the app lifespan (or injected by tests)."""
    service = getattr(request.app.state, "message_service", None)
    if service is None:
        raise HTTPException(
            status_code=503,
            detail=ErrorDetail(kind="store_unavailable", message="Message service not initialized").model_dump(),
        )
    return service


def raise_http_error(exc: MessageServiceError) -> None:
    """Map pipeline errors to HTTP errors carrying {kind, message}."""
    status_code = _STATUS_BY_ERROR.get(type(exc), 500)
    raise HTTPException(
        status_code=status_code,
        detail=ErrorDetail(kind=exc.kind, message=exc.message).model_dump(),
    ) from exc
