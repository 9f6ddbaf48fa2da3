from modelchat.schemas.catalog import ModelInfo, ModelsResponse
from modelchat.schemas.chat import (
    ErrorDetail,
    HistoryResponse,
    Message,
    SendMessageRequest,
    SendMessageResponse,
)

__all__ = [
    "ErrorDetail",
    "HistoryResponse",
    "Message",
    "ModelInfo",
    "ModelsResponse",
    "SendMessageRequest",
    "SendMessageResponse",
]
