# ------- shop/utils/decorators.py -------
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, List, Optional

from flask import g, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError, validation_messages
from .net import last_value_args


@dataclass
class Parsed:
    """Outcome of checking input against a schema: a value or the errors."""
    ok: bool
    value: Optional[Any] = None
    errors: List[str] = field(default_factory=list)

    @property
    def message(self):
        return ", ".join(self.errors)


def parse_input(schema: type[BaseModel], data) -> Parsed:
    try:
        return Parsed(ok=True, value=schema.model_validate(data or {}))
    except PydanticValidationError as e:
        return Parsed(ok=False, errors=validation_messages(e))


def validate(body: type[BaseModel] | None = None, query: type[BaseModel] | None = None):
    """Parse the JSON body and/or query string before the view runs.

    The parsed models are passed to the view as ``body=`` / ``query=``
    keyword arguments. Any failure becomes a 400 with every field message.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            errors = []
            if body is not None:
                result = parse_input(body, request.get_json(silent=True))
                errors.extend(result.errors)
                kwargs["body"] = result.value
            if query is not None:
                result = parse_input(query, last_value_args())
                errors.extend(result.errors)
                kwargs["query"] = result.value
            if errors:
                raise ValidationError(", ".join(errors))
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def auth_required(fn):
    """Bearer token required; exposes ``g.identity = {"userId", "email"}``."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        g.identity = {"userId": get_jwt_identity(), "email": get_jwt().get("email")}
        return fn(*args, **kwargs)
    return wrapper
