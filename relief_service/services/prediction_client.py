# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""HTTP client for the flood prediction backend."""
from typing import Any, Dict

import httpx

from relief_service.core.config import settings
from relief_service.core.errors import UpstreamError
from relief_service.core.logging import get_logger
from relief_service.metrics import UPSTREAM_CALLS

logger = get_logger(__name__)


class PredictionClient:
    def __init__(self, base_url: str | None = None, timeout: float | None = None) -> None:
        self._base_url = (base_url or settings.PREDICTION_SERVICE_URL).rstrip("/")
        self._timeout = timeout or settings.UPSTREAM_TIMEOUT

    def predict(self, features: Dict[str, Any], prediction_type: str = "flood") -> Dict[str, Any]:
        """
        Forward the feature payload to ``/predict``. The backend only models
        floods; a drought prediction is the complement of the flood score.
        """
        try:
            with httpx.Client(timeout=self._timeout) as client:
                resp = client.post(f"{self._base_url}/predict", json=features)
                resp.raise_for_status()
                result = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            UPSTREAM_CALLS.labels(upstream="prediction", outcome="error").inc()
            logger.warning("Prediction backend failed: %s", exc)
            raise UpstreamError("Failed to fetch prediction") from exc

        if not isinstance(result, dict):
            UPSTREAM_CALLS.labels(upstream="prediction", outcome="error").inc()
            raise UpstreamError("Failed to fetch prediction")
        UPSTREAM_CALLS.labels(upstream="prediction", outcome="ok").inc()

        prediction = result.get("prediction")
        if prediction_type == "drought":
            if isinstance(prediction, bool):
                prediction = not prediction
            elif isinstance(prediction, (int, float)):
                prediction = 1 - prediction
        return {**result, "prediction": prediction, "prediction_type": prediction_type}
