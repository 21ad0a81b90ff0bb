# db.py
import logging
import os
from typing import Iterator

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "").strip()
if not DATABASE_URL:
  raise RuntimeError("DATABASE_URL is not set in backend .env")

engine = create_engine(DATABASE_URL, echo=False, pool_pre_ping=True)

logger = logging.getLogger(__name__)

def init_db(bind: Engine = engine) -> None:
  # registers the customers and invoices tables on SQLModel.metadata
  import models  # noqa: F401

  SQLModel.metadata.create_all(bind)
  logger.info("ensured tables: %s", ", ".join(sorted(SQLModel.metadata.tables)))

def get_session() -> Iterator[Session]:
  """Request-scoped session; uncommitted work is rolled back if the request fails."""
  with Session(engine) as session:
    try:
      yield session
    except Exception as exc:
      session.rollback()
      logger.warning("rolled back request session after %s", type(exc).__name__)
      raise
