# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""HTTP client for the post-disaster support chat (OpenAI-compatible API)."""
import httpx

from relief_service.core.config import settings
from relief_service.core.errors import UpstreamError
from relief_service.core.logging import get_logger
from relief_service.metrics import UPSTREAM_CALLS

logger = get_logger(__name__)


class ChatNotConfiguredError(UpstreamError):
    pass


class ChatClient:
    def __init__(self, api_url: str | None = None, api_key: str | None = None,
                 model: str | None = None, timeout: float | None = None) -> None:
        self._api_url = api_url or settings.CHAT_API_URL
        self._api_key = settings.CHAT_API_KEY if api_key is None else api_key
        self._model = model or settings.CHAT_MODEL
        self._timeout = timeout or settings.UPSTREAM_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def reply(self, message: str) -> str:
        if not self.configured:
            raise ChatNotConfiguredError("Chat service is not configured")
        try:
            with httpx.Client(timeout=self._timeout) as client:
                resp = client.post(
                    self._api_url,
                    json={
                        "model": self._model,
                        "messages": [
                            {"role": "system", "content": settings.CHAT_SYSTEM_PROMPT},
                            {"role": "user", "content": message},
                        ],
                    },
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
                resp.raise_for_status()
                content = resp.json()["choices"][0]["message"]["content"]
        except httpx.HTTPStatusError as exc:
            UPSTREAM_CALLS.labels(upstream="chat", outcome="error").inc()
            logger.warning("Chat API returned status=%d", exc.response.status_code)
            raise UpstreamError("Chat request failed") from exc
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
            UPSTREAM_CALLS.labels(upstream="chat", outcome="error").inc()
            logger.warning("Chat API unreachable or malformed reply: %s", exc)
            raise UpstreamError("Chat request failed") from exc

        UPSTREAM_CALLS.labels(upstream="chat", outcome="ok").inc()
        return content
