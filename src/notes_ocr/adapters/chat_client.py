"""Chat completions client for the study assistant."""

from typing import Any, Optional

import httpx
import structlog

from notes_ocr.adapters.base import GenerationError, UpstreamProtocolError, require_api_key

logger = structlog.get_logger(__name__)

DEFAULT_CHAT_URL = "https://api.sarvam.ai/v1/chat/completions"


class SarvamChatClient:
    """Single request/response client for an OpenAI-style chat endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        chat_url: str = DEFAULT_CHAT_URL,
        model_name: str = "sarvam-m",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the chat client.

        Args:
            api_key: Subscription key. Checked lazily on the first request.
            chat_url: Chat completions endpoint.
            model_name: Model to request.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, used by tests.
        """
        self.api_key = api_key
        self.chat_url = chat_url
        self.model_name = model_name
        self.timeout = timeout
        self._transport = transport

        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {
                "api-subscription-key": require_api_key(self.api_key),
                "Content-Type": "application/json",
            }
            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def chat_completion(
        self,
        messages: list[dict[str, str]],
        max_tokens: int = 4096,
        temperature: float = 0.3,
    ) -> str:
        """
        Send one non-streaming chat request.

        Args:
            messages: Chat messages (role and content).
            max_tokens: Generation budget.
            temperature: Sampling temperature.

        Returns:
            Content of the first choice.

        Raises:
            UpstreamProtocolError: On transport error or non-success status.
            GenerationError: If the response has no content.
        """
        client = await self._get_client()

        payload = {
            "model": self.model_name,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "stream": False,
        }

        logger.debug("calling_chat_api", url=self.chat_url, model=self.model_name)

        try:
            response = await client.post(self.chat_url, json=payload)
        except httpx.HTTPError as e:
            logger.error("chat_request_error", error=str(e))
            raise UpstreamProtocolError(
                f"Chat completion failed: {str(e)}", step="chat_completion", original_error=e
            )

        if not response.is_success:
            body = response.text
            logger.error("chat_request_failed", status=response.status_code, body=body[:500])
            raise UpstreamProtocolError(
                f"Chat completion failed ({response.status_code}): {body}",
                step="chat_completion",
                status_code=response.status_code,
                body=body,
            )

        content = self._extract_content(response)
        if not content:
            raise GenerationError("No response from Sarvam chat model")

        usage = self._safe_json(response).get("usage") or {}
        logger.info(
            "chat_completion_received",
            model=self.model_name,
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
        )
        return content

    @staticmethod
    def _safe_json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def _extract_content(self, response: httpx.Response) -> Optional[str]:
        choices = self._safe_json(response).get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return None

        message = choices[0].get("message")
        if not isinstance(message, dict):
            return None

        content = message.get("content")
        if not isinstance(content, str) or not content.strip():
            return None
        return content

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("chat_client_closed")

    async def __aenter__(self) -> "SarvamChatClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
