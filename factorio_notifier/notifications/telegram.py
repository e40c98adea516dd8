"""Telegram Bot API notification sink."""

from typing import Optional

import httpx
from pydantic import BaseModel

from ..errors import DeliveryError


class TelegramPayload(BaseModel):
    chat_id: str
    text: str
    parse_mode: str = "HTML"


class TelegramSink:
    """Posts messages to a Telegram chat through the sendMessage method."""

    def __init__(
        self,
        token: str,
        chat_id: str,
        api_base_url: str = "https://api.telegram.org",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._chat_id = chat_id
        self._url = f"{api_base_url.rstrip('/')}/bot{token}/sendMessage"
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def deliver(self, message: str) -> None:
        """Send one message to the configured chat.

        Raises:
            DeliveryError: on transport failure or a non-success status
        """
        payload = TelegramPayload(chat_id=self._chat_id, text=message)
        try:
            response = await self._client.post(self._url, json=payload.model_dump())
        except httpx.HTTPError as e:
            # The URL embeds the bot token, keep it out of the message
            raise DeliveryError(f"HTTP request error: {type(e).__name__}") from e

        if not response.is_success:
            raise DeliveryError(
                f"Telegram API error {response.status_code}: {response.text}"
            )

    async def aclose(self) -> None:
        await self._client.aclose()
