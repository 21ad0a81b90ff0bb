# models.py
from uuid import uuid4
from sqlmodel import SQLModel, Field

def new_id() -> str:
  return str(uuid4())

class Customer(SQLModel, table=True):
  __tablename__ = "customers"

  id: str = Field(default_factory=new_id, primary_key=True, index=True)
  name: str
  # unique by application check only, see actions.is_email_unique
  email: str = Field(index=True)
  image_url: str = ""

class Invoice(SQLModel, table=True):
  __tablename__ = "invoices"

  id: str = Field(default_factory=new_id, primary_key=True, index=True)
  # no foreign key: the delete guard in actions.delete_customer covers it
  customer_id: str = Field(index=True)
  amount: int  # cents
  status: str = "pending"  # pending|paid
  date: str  # YYYY-MM-DD

class InvoiceRow(SQLModel):
  id: str
  customer_id: str
  name: str
  email: str
  image_url: str
  amount: int
  status: str
  date: str

class CustomerRow(SQLModel):
  id: str
  name: str
  email: str
  image_url: str
  total_invoices: int = 0
  total_pending: int = 0
  total_paid: int = 0
