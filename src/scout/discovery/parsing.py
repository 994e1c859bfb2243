"""Structured-output validation for analysis call results.

Gate output arrives as a model instance, a dict, or text. Text goes through
the same JSON extraction the providers use before validation.
"""

from typing import Any

from pydantic import BaseModel, ValidationError

from scout.discovery.errors import StructuredOutputError
from scout.providers.structured import parse_structured_text

__all__ = ["coerce_output", "parse_structured_text"]


def coerce_output[ModelT: BaseModel](
    raw: Any, model_cls: type[ModelT], streamed_text: str = ""
) -> ModelT:
    """Turn a gate's final output into a validated model.

    Accepts a model instance, a dict, or text. Text that does not parse
    falls back to the text streamed during the call.

    Args:
        raw: FinalOutput.output from the gate
        model_cls: Expected pydantic model
        streamed_text: Concatenated PartialText deltas for the call

    Returns:
        Validated model instance

    Raises:
        StructuredOutputError: If nothing parses or validation fails
    """
    if isinstance(raw, model_cls):
        return raw

    payload: Any = raw
    if isinstance(raw, BaseModel):
        payload = raw.model_dump(by_alias=True)
    elif isinstance(raw, str) or raw is None:
        payload = parse_structured_text(raw or "")
        if payload is None and streamed_text:
            payload = parse_structured_text(streamed_text)

    if payload is None:
        raise StructuredOutputError(f"No structured {model_cls.__name__} output received.")

    try:
        return model_cls.model_validate(payload)
    except ValidationError as e:
        raise StructuredOutputError(
            f"Invalid {model_cls.__name__} output: {e.error_count()} validation error(s): "
            f"{e.errors()[0]['msg']}"
        ) from e
