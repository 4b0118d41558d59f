from __future__ import annotations

import asyncio
import logging

import httpx

from maxmovies.core.config import AppConfig

LOGGER = logging.getLogger(__name__)

QUOTA_MARKER = "insufficient quota"


class InferenceError(Exception):
    pass


class InferenceQuotaError(InferenceError):
    pass


class ChatCompletionModel:
    async def complete(self, messages: list[dict[str, str]]) -> str | None:
        raise NotImplementedError


class HuggingFaceChatModel(ChatCompletionModel):
    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        url: str,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._url = url
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def model(self) -> str:
        return self._model

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def complete(self, messages: list[dict[str, str]]) -> str | None:
        payload = {"model": self._model, "messages": messages}
        LOGGER.info("Calling Hugging Face API with %s messages", len(messages))
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                # httpx timeouts bound each phase; wait_for bounds the whole call.
                response = await asyncio.wait_for(
                    client.post(self._url, headers=self._headers(), json=payload),
                    timeout=self._timeout_seconds,
                )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            message = _provider_error_message(exc.response) or str(exc)
            if exc.response.status_code == 402 or QUOTA_MARKER in message.lower():
                raise InferenceQuotaError(message) from exc
            raise InferenceError(message) from exc
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise InferenceError(
                f"Inference request timed out after {self._timeout_seconds:g}s"
            ) from exc
        except httpx.HTTPError as exc:
            message = str(exc) or exc.__class__.__name__
            if QUOTA_MARKER in message.lower():
                raise InferenceQuotaError(message) from exc
            raise InferenceError(message) from exc
        except ValueError as exc:
            raise InferenceError("Inference response was not valid JSON") from exc
        return extract_reply(body)


def _provider_error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text or None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        return message if isinstance(message, str) and message else None
    if isinstance(error, str) and error:
        return error
    return None


def extract_reply(body: object) -> str | None:
    if not isinstance(body, dict):
        return None
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, str) or not content:
        return None
    return content


def build_chat_model(config: AppConfig) -> ChatCompletionModel | None:
    if not config.hf_token:
        return None
    return HuggingFaceChatModel(
        api_key=config.hf_token,
        model=config.hf_model,
        url=config.hf_api_url,
        timeout_seconds=config.inference_timeout_seconds,
    )
