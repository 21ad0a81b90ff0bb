# auth.py
import logging
import os
from typing import Any, Mapping, Optional, Protocol

import httpx
from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

AUTH_URL = os.getenv("AUTH_URL", "http://127.0.0.1:3001/api/auth/callback/credentials").strip()
AUTH_TIMEOUT = float(os.getenv("AUTH_TIMEOUT", "10").strip() or 10)

logger = logging.getLogger(__name__)

class AuthError(Exception):
  """Error reported by the auth provider; ``type`` names the failure kind."""

  def __init__(self, type: str, detail: str = "") -> None:
    super().__init__(f"{type}: {detail}" if detail else type)
    self.type = type
    self.detail = detail

class AuthSession(BaseModel):
  token: str
  email: Optional[str] = None

class AuthProvider(Protocol):
  async def sign_in(self, provider: str, credentials: Mapping[str, Any]) -> AuthSession: ...

class HttpAuthProvider:
  """Client for the external credentials endpoint."""

  def __init__(self, url: str = AUTH_URL, timeout: float = AUTH_TIMEOUT, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
    self.url = url
    self.timeout = timeout
    self.transport = transport

  async def sign_in(self, provider: str, credentials: Mapping[str, Any]) -> AuthSession:
    payload = {
      "provider": provider,
      "email": credentials.get("email"),
      "password": credentials.get("password"),
    }
    async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
      r = await client.post(self.url, json=payload)

    if r.status_code in (401, 403):
      raise AuthError("CredentialsSignin")
    if r.status_code >= 400:
      raise AuthError("CallbackRouteError", f"{r.status_code} {r.text}")
    return AuthSession(**r.json())

async def authenticate(prev_state: Optional[str], form_data: Mapping[str, Any], *, auth: AuthProvider) -> Optional[str]:
  """Sign in with the submitted credentials.

  Returns None on success, a user-facing message for auth failures, and
  re-raises anything that is not an ``AuthError``.
  """
  try:
    await auth.sign_in("credentials", form_data)
  except AuthError as error:
    logger.warning("sign-in failed: %s", error.type)
    if error.type == "CredentialsSignin":
      return "Invalid credentials."
    return "Something went wrong."
  return None
