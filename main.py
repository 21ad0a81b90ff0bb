import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Form
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from auth import AuthProvider, HttpAuthProvider, authenticate
from billing_route import dev_router, router as billing_router
from cache import PageCache
from db import init_db

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip()
CORS_ORIGINS = [
  x.strip()
  for x in os.getenv("CORS_ORIGINS", "http://127.0.0.1:5173,http://localhost:5173").split(",")
  if x.strip()
]

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
  handler = logging.StreamHandler()
  handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
  logging.root.addHandler(handler)
  logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))


@asynccontextmanager
async def lifespan(app: FastAPI):
  setup_logging(LOG_LEVEL)
  init_db()
  logger.info("database ready, serving dashboard actions")
  yield


app = FastAPI(title="Invoice Dashboard Actions", version="1.0.0", lifespan=lifespan)
app.add_middleware(
  CORSMiddleware,
  allow_origins=CORS_ORIGINS,
  allow_credentials=True,
  allow_methods=["*"],
  allow_headers=["*"],
)
app.state.page_cache = PageCache()
app.include_router(billing_router)
app.include_router(dev_router)


def get_auth_provider() -> AuthProvider:
  return HttpAuthProvider()


@app.get("/health")
def health():
  return {"ok": True}


@app.post("/login")
async def login(
  email: Optional[str] = Form(None),
  password: Optional[str] = Form(None),
  auth: AuthProvider = Depends(get_auth_provider),
):
  error = await authenticate(None, {"email": email, "password": password}, auth=auth)
  if error:
    return JSONResponse({"message": error}, status_code=401)
  return RedirectResponse("/dashboard", status_code=303)
