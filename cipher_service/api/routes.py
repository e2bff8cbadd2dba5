from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ValidationError

from cipher_service.errors import ServiceError
from cipher_service.schemas import DecryptRequest, DecryptResponse, EncryptRequest, EncryptResponse
from cipher_service.services.cipher import CipherCore

router = APIRouter()
logger = logging.getLogger("uvicorn.error")

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

ModelT = TypeVar("ModelT", bound=BaseModel)


def _request_body_docs(model: type[BaseModel]) -> dict[str, Any]:
    # Bodies are parsed by hand to accept both JSON and urlencoded forms.
    schema = model.model_json_schema()
    return {
        "requestBody": {
            "required": False,
            "content": {
                "application/json": {"schema": schema},
                _FORM_CONTENT_TYPE: {"schema": schema},
            },
        }
    }


def get_cipher_core(request: Request) -> CipherCore:
    return request.app.state.cipher_core


async def _read_payload(request: Request) -> dict[str, Any]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_CONTENT_TYPE):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    body = await request.body()
    if not body.strip():
        return {}
    try:
        payload = await request.json()
    except ValueError as exc:
        raise ServiceError(status_code=400, code="invalid_json", message="Request body is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ServiceError(status_code=422, code="invalid_request", message="Request body must be an object")
    return payload


def _validate_payload(model: type[ModelT], payload: dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in exc.errors())
        raise ServiceError(
            status_code=422,
            code="invalid_request",
            message=f"Invalid request fields: {fields}",
        ) from exc


async def encrypt_payload(request: Request) -> EncryptRequest:
    return _validate_payload(EncryptRequest, await _read_payload(request))


async def decrypt_payload(request: Request) -> DecryptRequest:
    return _validate_payload(DecryptRequest, await _read_payload(request))


def _audit_log(
    *,
    operation: str,
    status: str,
    duration_ms: int,
    input_length: int | None,
    output_length: int | None = None,
    error_code: str | None = None,
) -> None:
    logger.info(
        "cipher.audit.execution | %s",
        {
            "operation": operation,
            "status": status,
            "duration_ms": duration_ms,
            "input_length": input_length,
            "output_length": output_length,
            "error_code": error_code,
        },
    )


def _elapsed_ms(started: float) -> int:
    return max(0, int((perf_counter() - started) * 1000))


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "service": "cipher"}


@router.post(
    "/encrypt",
    response_model=EncryptResponse,
    openapi_extra=_request_body_docs(EncryptRequest),
)
def encrypt(
    payload: EncryptRequest = Depends(encrypt_payload),
    cipher_core: CipherCore = Depends(get_cipher_core),
) -> EncryptResponse:
    started = perf_counter()
    input_length = len(payload.data) if payload.data is not None else None
    try:
        envelope = cipher_core.encrypt(payload.data)
    except ServiceError as exc:
        _audit_log(
            operation="encrypt",
            status="error",
            duration_ms=_elapsed_ms(started),
            input_length=input_length,
            error_code=exc.code,
        )
        raise
    _audit_log(
        operation="encrypt",
        status="ok",
        duration_ms=_elapsed_ms(started),
        input_length=input_length,
        output_length=len(envelope),
    )
    return EncryptResponse(encrypted_data=envelope)


@router.post(
    "/decrypt",
    response_model=DecryptResponse,
    openapi_extra=_request_body_docs(DecryptRequest),
)
def decrypt(
    payload: DecryptRequest = Depends(decrypt_payload),
    cipher_core: CipherCore = Depends(get_cipher_core),
) -> DecryptResponse:
    started = perf_counter()
    input_length = len(payload.encrypted_data) if payload.encrypted_data is not None else None
    try:
        data = cipher_core.decrypt(payload.encrypted_data)
    except ServiceError as exc:
        _audit_log(
            operation="decrypt",
            status="error",
            duration_ms=_elapsed_ms(started),
            input_length=input_length,
            error_code=exc.code,
        )
        raise
    _audit_log(
        operation="decrypt",
        status="ok",
        duration_ms=_elapsed_ms(started),
        input_length=input_length,
        output_length=len(data),
    )
    return DecryptResponse(data=data)
