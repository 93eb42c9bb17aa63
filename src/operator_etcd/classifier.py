"""
Classification of etcd replies into success values and errors.

Each reply ends up in exactly one of three outcomes:
1. Semantic error: the body carries an etcd error envelope -> EtcdError
   subclass picked by errorCode
2. Transport error: the body is not JSON, or the status is not 2xx and
   there is no envelope -> TransportError
3. Success: the body validates against the expected model -> model instance,
   otherwise DecodeError

Failures below HTTP (connect, timeout) never reach this module; EtcdClient
converts them to TransportError before a reply exists.
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from operator_etcd.errors import DecodeError, TransportError, error_from_payload
from operator_etcd.types import ErrorPayload

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        logger.warning(
            f"Unparseable reply from {response.request.method} "
            f"{response.request.url.path} (HTTP {response.status_code})"
        )
        raise TransportError(
            f"Reply to {response.request.url.path} is not valid JSON "
            f"(HTTP {response.status_code})",
            status_code=response.status_code,
        ) from exc


def decode_model(model: type[ModelT], data: Any) -> ModelT:
    """
    Validate parsed JSON against a response model.

    Args:
        model: Pydantic model class to build.
        data: Parsed JSON value.

    Returns:
        Model instance.

    Raises:
        DecodeError: If the data does not match the model's shape.
    """
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.warning(f"Reply did not match {model.__name__}: {exc.error_count()} error(s)")
        raise DecodeError(model.__name__, str(exc)) from exc


def classify_response(response: httpx.Response, model: type[ModelT]) -> ModelT:
    """
    Turn an etcd reply into a typed value or raise the matching error.

    errorCode is the only discriminant for semantic errors. The message
    is carried along but never interpreted.

    Args:
        response: Completed HTTP reply.
        model: Model to decode a successful body into.

    Returns:
        Decoded model instance.

    Raises:
        EtcdError: Subclass matching the reply's errorCode.
        TransportError: Body is not JSON, or a non-2xx reply has no envelope.
        DecodeError: Body (or error envelope) has the wrong shape.
    """
    data = _parse_body(response)

    if isinstance(data, dict) and "errorCode" in data:
        error = error_from_payload(decode_model(ErrorPayload, data))
        logger.info(
            f"etcd refused {response.request.method} {response.request.url.path}: "
            f"{error.error_code} {error.message}"
        )
        raise error

    if not response.is_success:
        logger.warning(
            f"HTTP {response.status_code} without error envelope from "
            f"{response.request.method} {response.request.url.path}"
        )
        raise TransportError(
            f"Unexpected HTTP {response.status_code} from {response.request.url.path}",
            status_code=response.status_code,
        )

    return decode_model(model, data)
