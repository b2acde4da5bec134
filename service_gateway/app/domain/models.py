"""
Request body models for Gateway routes.

Every field is optional at the model level; required fields are checked with
``missing_fields`` so that an incomplete body yields the route's own 400
message instead of a schema error.
"""

import json
from typing import Any, Dict, List, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ConfigDict

from shared.errors import ValidationError

BodyT = TypeVar("BodyT", bound="RequestBody")


def is_blank(value: Any) -> bool:
    """True for absent, empty, false or zero values."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)):
        return value == 0
    return False


class RequestBody(BaseModel):
    """Base for JSON request bodies; unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore")

    def missing_fields(self, *names: str) -> List[str]:
        return [name for name in names if is_blank(getattr(self, name))]

    def to_row(self) -> Dict[str, Any]:
        """Fields to write to the store; absent optional fields are omitted."""
        return self.model_dump(exclude_none=True)


class ReviewCreate(RequestBody):
    game_id: Any = None
    rating: Any = None
    comment: Any = None


class OrderCreate(RequestBody):
    billing_name: Any = None
    billing_email: Any = None
    billing_address: Any = None
    billing_city: Any = None
    billing_zip: Any = None
    total_price: Any = None


class OrderPayment(RequestBody):
    transaction_id: Any = None


class ContactMessage(RequestBody):
    name: Any = None
    email: Any = None
    message: Any = None


async def parse_body(request: Request, model: Type[BodyT]) -> BodyT:
    """Read the request's JSON object into ``model``.

    An empty body reads as ``{}``. Raises ``ValidationError`` when the body is
    not JSON or not a JSON object.
    """
    raw = await request.body()
    if not raw.strip():
        return model()

    try:
        payload = json.loads(raw)
    except ValueError:
        raise ValidationError("Invalid JSON body")

    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON body")

    return model.model_validate(payload)
