# forms.py
from decimal import Decimal, DecimalException, ROUND_HALF_UP
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, Type, TypeVar

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

# amount column is a signed 32-bit integer of cents
MAX_AMOUNT_CENTS = 2**31 - 1
MAX_AMOUNT = Decimal(MAX_AMOUNT_CENTS) / 100

FIELD_MESSAGES = {
  "customerId": "Please select a customer.",
  "amount": "Please enter an amount greater than $0.",
  "status": "Please select an invoice status.",
  "name": "Name is required",
  "email": "Invalid email address",
}

# (field, pydantic error type) pairs that get their own message
ERROR_MESSAGES = {
  ("amount", "less_than_equal"): f"Please enter an amount of at most ${MAX_AMOUNT:,}.",
}

FieldErrors = Dict[str, List[str]]

class InvoiceForm(BaseModel):
  """Submitted invoice fields; id and date are filled in by the server."""

  model_config = ConfigDict(populate_by_name=True)

  customer_id: str = Field(alias="customerId", min_length=1)
  amount: Decimal = Field(gt=0, le=MAX_AMOUNT)
  status: Literal["pending", "paid"]

  @field_validator("amount")
  @classmethod
  def at_least_one_cent(cls, v: Decimal) -> Decimal:
    try:
      cents = to_cents(v)
    except DecimalException as exc:
      raise ValueError("amount cannot be converted to cents") from exc
    if cents < 1:
      raise ValueError("amount rounds to zero cents")
    return v

  @property
  def amount_in_cents(self) -> int:
    return to_cents(self.amount)

class CustomerForm(BaseModel):
  name: str = Field(min_length=1)
  email: str

  @field_validator("name", "email", mode="before")
  @classmethod
  def strip_whitespace(cls, v: Any) -> Any:
    return v.strip() if isinstance(v, str) else v

  @field_validator("email")
  @classmethod
  def check_email_syntax(cls, v: str) -> str:
    # syntax only, no DNS lookup
    try:
      info = validate_email(
        v,
        check_deliverability=False,
        globally_deliverable=False,
        test_environment=True,
        allow_display_name=False,
      )
    except EmailNotValidError as exc:
      raise ValueError(str(exc)) from exc
    if "." not in info.domain:
      raise ValueError("email domain needs a top-level domain")
    return info.normalized

class FormState(BaseModel):
  kind: Literal["error"] = "error"
  errors: FieldErrors = Field(default_factory=dict)
  message: Optional[str] = None

class Redirect(BaseModel):
  kind: Literal["redirect"] = "redirect"
  location: str

class Result(BaseModel):
  kind: Literal["result"] = "result"
  message: str

F = TypeVar("F", bound=BaseModel)

def to_cents(amount: Decimal) -> int:
  return int((amount * 100).to_integral_value(rounding=ROUND_HALF_UP))

def validate_form(schema: Type[F], data: Mapping[str, Any]) -> Tuple[Optional[F], FieldErrors]:
  """Parse ``data`` with ``schema``.

  Returns ``(form, {})`` on success and ``(None, errors)`` otherwise, where
  ``errors`` maps each failing field to its messages in report order.
  """
  try:
    return schema.model_validate(dict(data)), {}
  except ValidationError as exc:
    errors: FieldErrors = {}
    for err in exc.errors():
      field = str(err["loc"][0]) if err["loc"] else "form"
      msg = ERROR_MESSAGES.get((field, err["type"])) or FIELD_MESSAGES.get(field, err["msg"])
      bucket = errors.setdefault(field, [])
      if msg not in bucket:
        bucket.append(msg)
    return None, errors
