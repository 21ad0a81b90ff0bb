# billing_routes.py
from typing import Any, Dict, List, Optional, Union
from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlmodel import Session, col, select

import actions
from cache import PageCache
from db import get_session
from forms import FormState, Redirect, Result
from models import Customer, CustomerRow, Invoice, InvoiceRow

router = APIRouter(prefix="/dashboard", tags=["billing"])
dev_router = APIRouter(prefix="/api", tags=["dev"])

def get_cache(request: Request) -> PageCache:
  return request.app.state.page_cache

def get_context(session: Session = Depends(get_session), cache: PageCache = Depends(get_cache)) -> actions.ActionContext:
  return actions.ActionContext(session=session, cache=cache)

def _match(q: str, *values: str) -> bool:
  ql = q.strip().lower()
  return any(ql in (v or "").lower() for v in values)

def _respond(outcome: Union[Redirect, FormState, Result]) -> Any:
  if isinstance(outcome, Redirect):
    return RedirectResponse(outcome.location, status_code=303)
  if isinstance(outcome, FormState):
    return JSONResponse(outcome.model_dump(), status_code=422)
  return outcome.model_dump()

# --- listing views ---

@router.get("/invoices", response_model=List[InvoiceRow])
def list_invoices(q: Optional[str] = None, session: Session = Depends(get_session), cache: PageCache = Depends(get_cache)):
  query = (q or "").strip()
  cached = cache.get(actions.INVOICES_PATH, query)
  if cached is not None:
    return cached
  generation = cache.generation(actions.INVOICES_PATH)

  stmt = (
    select(Invoice, Customer)
    .join(Customer, col(Customer.id) == col(Invoice.customer_id))
    .order_by(col(Invoice.date).desc())
  )
  rows = [
    InvoiceRow(
      id=inv.id,
      customer_id=inv.customer_id,
      name=c.name,
      email=c.email,
      image_url=c.image_url,
      amount=inv.amount,
      status=inv.status,
      date=inv.date,
    )
    for inv, c in session.exec(stmt).all()
  ]
  if query:
    rows = [r for r in rows if _match(query, r.name, r.email, str(r.amount), r.date, r.status)]
  cache.set(actions.INVOICES_PATH, query, rows, generation)
  return rows

@router.get("/customers", response_model=List[CustomerRow])
def list_customers(q: Optional[str] = None, session: Session = Depends(get_session), cache: PageCache = Depends(get_cache)):
  query = (q or "").strip()
  cached = cache.get(actions.CUSTOMERS_PATH, query)
  if cached is not None:
    return cached
  generation = cache.generation(actions.CUSTOMERS_PATH)

  customers = session.exec(select(Customer).order_by(col(Customer.name))).all()
  by_id: Dict[str, CustomerRow] = {c.id: CustomerRow(**c.model_dump()) for c in customers}
  for inv in session.exec(select(Invoice)).all():
    row = by_id.get(inv.customer_id)
    if row is None:
      continue
    row.total_invoices += 1
    if inv.status == "pending":
      row.total_pending += inv.amount
    elif inv.status == "paid":
      row.total_paid += inv.amount

  rows = list(by_id.values())
  if query:
    rows = [r for r in rows if _match(query, r.name, r.email)]
  cache.set(actions.CUSTOMERS_PATH, query, rows, generation)
  return rows

@router.get("/customers/{customer_id}", response_model=Customer)
def get_customer(customer_id: str, session: Session = Depends(get_session)):
  customer = session.get(Customer, customer_id)
  if not customer:
    raise HTTPException(status_code=404, detail="Customer not found")
  return customer

# --- invoice mutations ---

@router.post("/invoices/create")
def create_invoice(
  customerId: Optional[str] = Form(None),
  amount: Optional[str] = Form(None),
  status: Optional[str] = Form(None),
  ctx: actions.ActionContext = Depends(get_context),
):
  form = {"customerId": customerId, "amount": amount, "status": status}
  return _respond(actions.create_invoice(ctx, None, form))

@router.post("/invoices/{invoice_id}/edit")
def update_invoice(
  invoice_id: str,
  customerId: Optional[str] = Form(None),
  amount: Optional[str] = Form(None),
  status: Optional[str] = Form(None),
  ctx: actions.ActionContext = Depends(get_context),
):
  form = {"customerId": customerId, "amount": amount, "status": status}
  return _respond(actions.update_invoice(ctx, invoice_id, None, form))

@router.post("/invoices/{invoice_id}/delete")
def delete_invoice(invoice_id: str, ctx: actions.ActionContext = Depends(get_context)):
  return _respond(actions.delete_invoice(ctx, invoice_id))

# --- customer mutations ---

@router.post("/customers/create")
def create_customer(
  name: Optional[str] = Form(None),
  email: Optional[str] = Form(None),
  ctx: actions.ActionContext = Depends(get_context),
):
  return _respond(actions.create_customer(ctx, None, {"name": name, "email": email}))

@router.post("/customers/{customer_id}/edit")
def update_customer(
  customer_id: str,
  name: Optional[str] = Form(None),
  email: Optional[str] = Form(None),
  ctx: actions.ActionContext = Depends(get_context),
):
  return _respond(actions.update_customer(ctx, customer_id, None, {"name": name, "email": email}))

@router.post("/customers/{customer_id}/delete")
def delete_customer(customer_id: str, ctx: actions.ActionContext = Depends(get_context)):
  return _respond(actions.delete_customer(ctx, customer_id))

# --- dev ---

@dev_router.post("/seed")
def seed_if_empty(session: Session = Depends(get_session), cache: PageCache = Depends(get_cache)):
  # Seed only if DB is empty
  any_customer = session.exec(select(Customer)).first()
  if any_customer:
    return {"ok": True, "seeded": False}

  apex = Customer(name="Apex Retail", email="billing@apexretail.io")
  bluesky = Customer(name="BlueSky Logistics", email="accounts@bluesky-logistics.io")
  nimbus = Customer(name="Nimbus Clinics", email="finance@nimbusclinics.io")
  session.add_all([apex, bluesky, nimbus])

  session.add_all([
    Invoice(customer_id=apex.id, amount=48900, status="paid", date="2025-11-25"),
    Invoice(customer_id=bluesky.id, amount=125000, status="pending", date="2025-11-28"),
    Invoice(customer_id=nimbus.id, amount=76000, status="pending", date="2025-12-01"),
  ])

  session.commit()
  cache.revalidate_path(actions.INVOICES_PATH)
  cache.revalidate_path(actions.CUSTOMERS_PATH)
  return {"ok": True, "seeded": True}
