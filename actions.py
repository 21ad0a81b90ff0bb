# actions.py
"""Form mutations for invoices and customers.

Every action validates the submitted fields, runs its business-rule checks,
issues one write and then either redirects to the listing view or returns a
state/result for the caller to display. Database failures are logged and
turned into a generic message; nothing here raises on bad input.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union

from sqlalchemy import delete, exists, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from cache import PageCache
from forms import CustomerForm, FormState, InvoiceForm, Redirect, Result, validate_form
from models import Customer, Invoice

logger = logging.getLogger(__name__)

INVOICES_PATH = "/dashboard/invoices"
CUSTOMERS_PATH = "/dashboard/customers"

DUPLICATE_EMAIL = "Email is already is use."
CUSTOMER_IN_USE = "Cannot delete Customer who is already assigned to any Invoice."

# driver-side OverflowError is not wrapped by SQLAlchemy
STORAGE_ERRORS = (SQLAlchemyError, OverflowError)

Outcome = Union[Redirect, FormState]

def utc_today() -> date:
  return datetime.now(timezone.utc).date()

@dataclass
class ActionContext:
  session: Session
  cache: PageCache
  today: Callable[[], date] = utc_today

def _database_error(session: Session, action: str) -> str:
  session.rollback()
  logger.exception("database error during %s", action)
  return f"Database Error: Failed to {action}."

def _revalidate_listings(cache: PageCache) -> None:
  # invoice rows show customer names, customer rows show invoice totals
  cache.revalidate_path(INVOICES_PATH)
  cache.revalidate_path(CUSTOMERS_PATH)

# --- checks ---

def is_email_unique(session: Session, email: str, customer_id: Optional[str] = None) -> bool:
  taken = exists().where(Customer.email == email)
  if customer_id:
    taken = taken.where(Customer.id != customer_id)
  return not session.exec(select(taken)).one()

def is_customer_referenced(session: Session, customer_id: str) -> bool:
  return bool(session.exec(select(exists().where(Invoice.customer_id == customer_id))).one())

# --- invoices ---

def create_invoice(ctx: ActionContext, prev_state: Optional[FormState], form_data: Mapping[str, Any]) -> Outcome:
  form, errors = validate_form(InvoiceForm, form_data)
  if form is None:
    return FormState(errors=errors, message="Missing Fields. Failed to Create Invoice.")

  invoice = Invoice(
    customer_id=form.customer_id,
    amount=form.amount_in_cents,
    status=form.status,
    date=ctx.today().isoformat(),
  )
  invoice_id = invoice.id
  try:
    ctx.session.add(invoice)
    ctx.session.commit()
  except STORAGE_ERRORS:
    return FormState(message=_database_error(ctx.session, "Create Invoice"))

  logger.info("created invoice %s (%d cents) for customer %s", invoice_id, form.amount_in_cents, form.customer_id)
  _revalidate_listings(ctx.cache)
  return Redirect(location=INVOICES_PATH)

def update_invoice(
  ctx: ActionContext, invoice_id: str, prev_state: Optional[FormState], form_data: Mapping[str, Any]
) -> Outcome:
  form, errors = validate_form(InvoiceForm, form_data)
  if form is None:
    return FormState(errors=errors, message="Missing Fields. Failed to Update Invoice.")

  stmt = (
    update(Invoice)
    .where(Invoice.id == invoice_id)
    .values(customer_id=form.customer_id, amount=form.amount_in_cents, status=form.status)
  )
  try:
    res = ctx.session.exec(stmt)
    ctx.session.commit()
  except STORAGE_ERRORS:
    return FormState(message=_database_error(ctx.session, "Update Invoice"))

  if res.rowcount == 0:
    logger.warning("update matched no invoice with id %s", invoice_id)
  _revalidate_listings(ctx.cache)
  return Redirect(location=INVOICES_PATH)

def delete_invoice(ctx: ActionContext, invoice_id: str) -> Result:
  try:
    ctx.session.exec(delete(Invoice).where(Invoice.id == invoice_id))
    ctx.session.commit()
  except STORAGE_ERRORS:
    return Result(message=_database_error(ctx.session, "Delete Invoice"))

  logger.info("deleted invoice %s", invoice_id)
  _revalidate_listings(ctx.cache)
  return Result(message="Deleted Invoice.")

# --- customers ---

def create_customer(ctx: ActionContext, prev_state: Optional[FormState], form_data: Mapping[str, Any]) -> Outcome:
  message = "Missing Fields. Failed to Create Customer."
  form, errors = validate_form(CustomerForm, form_data)
  if form is None:
    return FormState(errors=errors, message=message)

  customer = Customer(name=form.name, email=form.email, image_url="")
  customer_id = customer.id
  try:
    if not is_email_unique(ctx.session, form.email):
      logger.warning("refused customer create: email %s already in use", form.email)
      return FormState(errors={"email": [DUPLICATE_EMAIL]}, message=message)
    ctx.session.add(customer)
    ctx.session.commit()
  except STORAGE_ERRORS:
    return FormState(message=_database_error(ctx.session, "Create Customer"))

  logger.info("created customer %s", customer_id)
  _revalidate_listings(ctx.cache)
  return Redirect(location=CUSTOMERS_PATH)

def update_customer(
  ctx: ActionContext, customer_id: str, prev_state: Optional[FormState], form_data: Mapping[str, Any]
) -> Outcome:
  message = "Missing Fields. Failed to Update Customer."
  form, errors = validate_form(CustomerForm, form_data)
  if form is None:
    return FormState(errors=errors, message=message)

  stmt = update(Customer).where(Customer.id == customer_id).values(name=form.name, email=form.email)
  try:
    if not is_email_unique(ctx.session, form.email, customer_id):
      logger.warning("refused customer %s update: email %s already in use", customer_id, form.email)
      return FormState(errors={"email": [DUPLICATE_EMAIL]}, message=message)
    res = ctx.session.exec(stmt)
    ctx.session.commit()
  except STORAGE_ERRORS:
    return FormState(message=_database_error(ctx.session, "Update Customer"))

  if res.rowcount == 0:
    logger.warning("update matched no customer with id %s", customer_id)
  _revalidate_listings(ctx.cache)
  return Redirect(location=CUSTOMERS_PATH)

def delete_customer(ctx: ActionContext, customer_id: str) -> Result:
  try:
    if is_customer_referenced(ctx.session, customer_id):
      logger.warning("refused delete of customer %s: referenced by invoices", customer_id)
      return Result(message=CUSTOMER_IN_USE)
    ctx.session.exec(delete(Customer).where(Customer.id == customer_id))
    ctx.session.commit()
  except STORAGE_ERRORS:
    return Result(message=_database_error(ctx.session, "Delete Customer"))

  logger.info("deleted customer %s", customer_id)
  _revalidate_listings(ctx.cache)
  return Result(message="Deleted Customer.")
