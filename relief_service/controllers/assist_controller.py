# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: proxies to the prediction backend and the support chat."""
from fastapi import APIRouter, Depends, HTTPException

from relief_service.core.dependencies import get_chat_client, get_prediction_client
from relief_service.core.errors import UpstreamError
from relief_service.schemas import ChatRequest, ChatResponse, PredictRequest
from relief_service.services.chat_client import ChatClient, ChatNotConfiguredError
from relief_service.services.prediction_client import PredictionClient

router = APIRouter(prefix="/api/v1", tags=["Assist"])


@router.post("/predict")
def predict(payload: PredictRequest,
            client: PredictionClient = Depends(get_prediction_client)):
    features = payload.model_dump(exclude={"prediction_type"})
    try:
        return client.predict(features, payload.prediction_type)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/chat", response_model=ChatResponse)
def chat(payload: ChatRequest,
         client: ChatClient = Depends(get_chat_client)):
    try:
        return ChatResponse(response=client.reply(payload.message))
    except ChatNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))
