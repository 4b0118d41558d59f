from __future__ import annotations

import json
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from maxmovies.app.chat.contracts import GenerateRequest
from maxmovies.app.chat.service import (
    ChatService,
    ConfigurationError,
    PromptValidationError,
)
from maxmovies.app.llm.providers import InferenceQuotaError
from maxmovies.core.config import AppConfig, load_app_config
from maxmovies.core.logging_setup import configure_logging

LOGGER = logging.getLogger(__name__)

GENERATE_PATH = "/api/generate"
ALLOWED_METHODS = ["POST", "GET", "OPTIONS"]

CORS_HEADERS = {
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,OPTIONS,PATCH,DELETE,POST,PUT",
    "Access-Control-Allow-Headers": (
        "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
        "Content-MD5, Content-Type, Date, X-Api-Version"
    ),
}

EMPTY_PROMPT_MESSAGE = "Missing or empty prompt parameter."


class InvalidBodyError(Exception):
    pass


def method_not_allowed_response(method: str) -> JSONResponse:
    return JSONResponse(
        status_code=405,
        content={
            "error": f"Method {method} not allowed. Use POST or GET.",
            "allowed": ALLOWED_METHODS,
        },
    )


def build_status_descriptor(config: AppConfig) -> dict[str, object]:
    return {
        "status": "online",
        "service": config.app_name,
        "version": config.app_version,
        "endpoints": {
            "generate": {
                "method": "POST",
                "description": "Chat with the AI",
                "body": {
                    "prompt": "string (required)",
                    "userId": "string (optional)",
                    "project": "string (optional)",
                },
            }
        },
    }


async def _read_payload(request: Request) -> object:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
        # Some clients send the JSON document as a JSON string.
        if isinstance(payload, str):
            payload = json.loads(payload)
    except ValueError as exc:
        raise InvalidBodyError("Invalid JSON body.") from exc
    return payload


def _parse_generate_request(payload: object) -> GenerateRequest:
    if not isinstance(payload, dict):
        raise PromptValidationError(EMPTY_PROMPT_MESSAGE)
    try:
        return GenerateRequest.model_validate(payload)
    except ValidationError as exc:
        raise PromptValidationError(_validation_message(exc)) from exc


def _validation_message(exc: ValidationError) -> str:
    fields = [error["loc"][0] for error in exc.errors() if error.get("loc")]
    if "prompt" in fields or not fields:
        return EMPTY_PROMPT_MESSAGE
    return f"Invalid {fields[0]} parameter."


def create_app(
    config: AppConfig | None = None,
    *,
    service: ChatService | None = None,
) -> FastAPI:
    resolved_config = config or load_app_config()
    configure_logging(resolved_config.log_level)
    chat_service = service or ChatService(resolved_config)

    app = FastAPI(title=resolved_config.app_name, version=resolved_config.app_version)
    app.state.config = resolved_config
    app.state.chat_service = chat_service

    @app.middleware("http")
    async def apply_cors_headers(request: Request, call_next):
        try:
            if (
                request.url.path == GENERATE_PATH
                and request.method not in ALLOWED_METHODS
            ):
                response = method_not_allowed_response(request.method)
            else:
                response = await call_next(request)
        except Exception as exc:
            LOGGER.exception("Unhandled error for %s %s", request.method, request.url.path)
            response = JSONResponse(
                status_code=500,
                content={"error": "Server error", "details": str(exc)},
            )
        response.headers.update(CORS_HEADERS)
        return response

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.options(GENERATE_PATH)
    async def generate_preflight() -> Response:
        return Response(status_code=200)

    @app.get(GENERATE_PATH)
    async def generate_status() -> JSONResponse:
        return JSONResponse(content=build_status_descriptor(resolved_config))

    @app.post(GENERATE_PATH)
    async def generate(request: Request) -> JSONResponse:
        LOGGER.info("MaxMovies AI API request received")
        try:
            payload = await _read_payload(request)
            generate_request = _parse_generate_request(payload)
            result = await chat_service.generate(generate_request)
        except InvalidBodyError as exc:
            return JSONResponse(status_code=400, content={"error": str(exc)})
        except PromptValidationError as exc:
            return JSONResponse(status_code=400, content={"error": str(exc)})
        except ConfigurationError as exc:
            LOGGER.error("Server configuration error: %s", exc)
            return JSONResponse(
                status_code=500,
                content={"error": "Server configuration error", "message": str(exc)},
            )
        except InferenceQuotaError as exc:
            LOGGER.warning("Hugging Face quota exhausted: %s", exc)
            return JSONResponse(
                status_code=402,
                content={
                    "error": "Hugging Face API failed: Insufficient quota",
                    "message": "Please top up your HF account or use a different token.",
                },
            )
        except Exception as exc:
            LOGGER.exception("Generate request failed: %s", exc)
            return JSONResponse(
                status_code=500,
                content={"error": "Server error", "details": str(exc)},
            )
        return JSONResponse(content=result.model_dump(by_alias=True))

    return app
