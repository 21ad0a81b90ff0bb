from sqlmodel import select

import actions
from forms import FormState, Redirect, Result
from models import Customer


def _customer(session, id):
  return session.exec(select(Customer).where(Customer.id == id)).first()


def _count(session):
  return len(session.exec(select(Customer)).all())


def test_create_customer(ctx, session, cache):
  cache.set(actions.CUSTOMERS_PATH, "", ["cached"])

  outcome = actions.create_customer(ctx, None, {"name": " Grace Hopper ", "email": "grace@navy.io"})

  assert outcome == Redirect(location="/dashboard/customers")
  [c] = session.exec(select(Customer)).all()
  assert (c.name, c.email, c.image_url) == ("Grace Hopper", "grace@navy.io", "")
  assert actions.CUSTOMERS_PATH not in cache


def test_create_customer_validation_failure(ctx, session):
  outcome = actions.create_customer(ctx, None, {"name": "", "email": "nope"})

  assert outcome == FormState(
    errors={"name": ["Name is required"], "email": ["Invalid email address"]},
    message="Missing Fields. Failed to Create Customer.",
  )
  assert _count(session) == 0


def test_create_customer_duplicate_email(ctx, session, add_customer):
  add_customer("9", email="a@x.com")

  outcome = actions.create_customer(ctx, None, {"name": "Other", "email": "a@x.com"})

  assert outcome.errors == {"email": ["Email is already is use."]}
  assert outcome.message == "Missing Fields. Failed to Create Customer."
  assert _count(session) == 1


def test_update_customer_email_taken_by_other(ctx, session, add_customer):
  add_customer("9", name="Nine", email="a@x.com")
  add_customer("5", name="Five", email="five@x.com")

  outcome = actions.update_customer(ctx, "5", None, {"name": "Five", "email": "a@x.com"})

  assert isinstance(outcome, FormState)
  assert outcome.errors == {"email": ["Email is already is use."]}
  assert _customer(session, "5").email == "five@x.com"


def test_update_customer_keeps_own_email(ctx, session, cache, add_customer):
  add_customer("5", name="Five", email="a@x.com")
  cache.set(actions.CUSTOMERS_PATH, "five", ["cached"])

  outcome = actions.update_customer(ctx, "5", None, {"name": "Five Renamed", "email": "a@x.com"})

  assert outcome == Redirect(location="/dashboard/customers")
  assert _customer(session, "5").name == "Five Renamed"
  assert actions.CUSTOMERS_PATH not in cache


def test_update_customer_validation_message(ctx, add_customer):
  add_customer("5")

  outcome = actions.update_customer(ctx, "5", None, {"name": "Five", "email": "broken@"})

  assert outcome.message == "Missing Fields. Failed to Update Customer."
  assert outcome.errors == {"email": ["Invalid email address"]}


def test_is_email_unique(session, add_customer):
  add_customer("9", email="a@x.com")

  assert actions.is_email_unique(session, "b@x.com")
  assert not actions.is_email_unique(session, "a@x.com")
  assert not actions.is_email_unique(session, "a@x.com", "5")
  assert actions.is_email_unique(session, "a@x.com", "9")


def test_delete_referenced_customer_is_refused(ctx, session, cache, add_customer, add_invoice):
  add_customer("c1")
  add_invoice("i1", "c1")
  cache.set(actions.CUSTOMERS_PATH, "", ["cached"])

  outcome = actions.delete_customer(ctx, "c1")

  assert outcome == Result(message="Cannot delete Customer who is already assigned to any Invoice.")
  assert _customer(session, "c1") is not None
  assert actions.CUSTOMERS_PATH in cache


def test_delete_unreferenced_customer(ctx, session, add_customer, add_invoice):
  add_customer("c1", email="one@x.com")
  add_customer("c2", email="two@x.com")
  add_invoice("i1", "c2")

  outcome = actions.delete_customer(ctx, "c1")

  assert outcome == Result(message="Deleted Customer.")
  assert _customer(session, "c1") is None
  assert _customer(session, "c2") is not None


def test_delete_customer_database_error(ctx, engine):
  Customer.__table__.drop(engine)

  outcome = actions.delete_customer(ctx, "c1")

  assert outcome == Result(message="Database Error: Failed to Delete Customer.")


def test_create_customer_database_error(ctx, engine):
  Customer.__table__.drop(engine)

  outcome = actions.create_customer(ctx, None, {"name": "Ada", "email": "ada@acme.io"})

  assert outcome == FormState(message="Database Error: Failed to Create Customer.")


def test_update_customer_database_error_rolls_back(ctx, session, engine):
  Customer.__table__.drop(engine)

  outcome = actions.update_customer(ctx, "5", None, {"name": "Five", "email": "five@x.com"})

  assert outcome == FormState(message="Database Error: Failed to Update Customer.")
  assert not session.in_transaction()


def test_customer_rename_revalidates_invoice_listing(ctx, cache, add_customer):
  add_customer("5", name="Five", email="five@x.com")
  cache.set(actions.INVOICES_PATH, "", ["rows showing the old name"])

  actions.update_customer(ctx, "5", None, {"name": "Renamed", "email": "five@x.com"})

  assert actions.INVOICES_PATH not in cache
