"""
Boundary checks for configuration objects handed to the evaluators.

SLA and alert definitions normally arrive as validated models from the
configuration store. Raw mappings are accepted too and validated here;
anything absent or malformed becomes a MissingConfigurationError.
"""

from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from apisignals.errors import MissingConfigurationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def require_definition(value: Any, model: Type[ModelT], kind: str) -> ModelT:
    """
    Return ``value`` as an instance of ``model`` or fail.

    Args:
        value: Model instance, mapping, or None
        model: Expected pydantic model class
        kind: Human-readable name used in error messages ("SLA", "alert")

    Returns:
        Validated model instance

    Raises:
        MissingConfigurationError: If value is None, of the wrong type, or invalid
    """
    if value is None:
        raise MissingConfigurationError(f"{kind} definition is missing")

    if isinstance(value, model):
        return value

    if isinstance(value, dict):
        try:
            return model.model_validate(value)
        except ValidationError as e:
            raise MissingConfigurationError(
                f"{kind} definition is malformed: {e.error_count()} validation error(s)"
            ) from e

    raise MissingConfigurationError(
        f"{kind} definition must be a {model.__name__} or mapping, got {type(value).__name__}"
    )
