"""
COVERWISE • api/deps.py
FastAPI dependencies shared by the routers, plus the body-validation helper
that turns pydantic errors into {error, message, errors} 400 responses.
"""

from __future__ import annotations

from typing import Any, Dict, List, Type, TypeVar

from fastapi import Depends
from pydantic import BaseModel, ValidationError

from coverwise.core.composer import CoverLetterComposer, make_composer
from coverwise.core.config import Settings, get_settings
from coverwise.core.errors import ValidationFailed
from coverwise.core.payments import PaymentGate

M = TypeVar("M", bound=BaseModel)


def get_payment_gate(settings: Settings = Depends(get_settings)) -> PaymentGate:
    return PaymentGate(settings)


def get_composer(settings: Settings = Depends(get_settings)) -> CoverLetterComposer:
    return make_composer(settings)


def error_list(exc: ValidationError) -> List[Dict[str, Any]]:
    return [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in exc.errors(include_url=False, include_context=False, include_input=False)
    ]


def parse_body(model: Type[M], payload: Dict[str, Any], error: str, message: str) -> M:
    """Validate a JSON body against `model`; failures become a 400 ValidationFailed."""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailed(error, message, extra={"errors": error_list(e)}) from e
