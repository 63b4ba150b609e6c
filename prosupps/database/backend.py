"""
Thin contract over the Supabase SDK.

Every page-level service talks to the hosted backend through `Backend`, which
exposes auth, row CRUD and blob storage and turns SDK failures into the
`BackendError` hierarchy. Auth-state changes are published on a single
`AuthEvents` hub so the rest of the app can subscribe once.
"""
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
from fastapi import Depends
from postgrest.exceptions import APIError
from supabase import Client

from prosupps.core.errors import (
    AuthorizationError, BackendError, NotFoundError, TransportError
)
from prosupps.database.supabase_client import SupabaseClient, get_supabase, get_service_supabase

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
USER_UPDATED = "USER_UPDATED"

AuthCallback = Callable[[str, Dict[str, Any]], None]

# PostgREST codes that mean "the JWT / RLS policy rejected you"
_AUTH_CODES = {"42501", "PGRST301", "PGRST302"}


class AuthEvents:
    """Fan-out hub for auth-state changes."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: List[AuthCallback] = []

    def subscribe(self, callback: AuthCallback) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)
        return unsubscribe

    def publish(self, event: str, session: Dict[str, Any]) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event, session)
            except Exception:
                logger.exception("Auth subscriber failed on %s", event)

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()


auth_events = AuthEvents()


def _status_of(exc: Exception) -> Tuple[Optional[int], str]:
    """Best-effort (status, message) from auth/storage SDK exceptions."""
    message = getattr(exc, "message", None) or str(exc)
    status = getattr(exc, "status", None) or getattr(exc, "status_code", None)
    if exc.args and isinstance(exc.args[0], dict):
        payload = exc.args[0]
        status = payload.get("statusCode", status)
        message = payload.get("message") or payload.get("error") or message
    try:
        status = int(status) if status is not None else None
    except (TypeError, ValueError):
        status = None
    return status, str(message)


def classify_error(exc: Exception) -> BackendError:
    if isinstance(exc, BackendError):
        return exc
    if isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError)):
        return TransportError(str(exc) or "Network error")
    if isinstance(exc, APIError):
        message = exc.message or str(exc)
        if exc.code == "PGRST116":
            return NotFoundError(message)
        if exc.code in _AUTH_CODES or "JWT" in message:
            return AuthorizationError(message)
        if exc.code and exc.code.startswith(("08", "57", "53")):
            # connection / operator intervention / insufficient resources
            return TransportError(message)
        return BackendError(message)
    status, message = _status_of(exc)
    if status in (401, 403):
        return AuthorizationError(message)
    if status == 404:
        return NotFoundError(message)
    if status is not None and (status == 429 or status >= 500):
        return TransportError(message)
    return BackendError(message)


def _user_dict(user) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "user_metadata": user.user_metadata or {},
        "app_metadata": user.app_metadata or {},
        "created_at": user.created_at,
        "updated_at": getattr(user, "updated_at", None),
    }


class Backend:
    def __init__(self, client: Client, events: AuthEvents = None, admin_client: Client = None):
        self.client = client
        self.events = events or auth_events
        self.admin_client = admin_client

    # Auth

    def get_current_user(self, token: str) -> Dict[str, Any]:
        try:
            response = self.client.auth.get_user(jwt=token)
        except Exception as e:
            raise classify_error(e)
        if not response or not response.user:
            raise AuthorizationError("Invalid or expired token")
        return _user_dict(response.user)

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        try:
            response = self.client.auth.sign_in_with_password({
                "email": email,
                "password": password
            })
        except Exception as e:
            raise classify_error(e)
        if not response.user or not response.session:
            raise AuthorizationError("Invalid login credentials")
        session = {
            "user": _user_dict(response.user),
            "access_token": response.session.access_token,
        }
        self.events.publish(SIGNED_IN, session)
        return session

    def sign_up(self, email: str, password: str, profile_seed: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": profile_seed}
            })
        except Exception as e:
            raise classify_error(e)
        if not response.user:
            raise BackendError("Failed to register user")
        return _user_dict(response.user)

    def sign_out(self, token: str) -> None:
        """Revoke the session behind `token`, not whatever session a client holds."""
        try:
            admin = self.admin_client or SupabaseClient.get_service_client()
            admin.auth.admin.sign_out(token)
        except Exception as e:
            # Tokens are stateless JWTs; the session still ends locally
            logger.warning("Backend sign-out failed: %s", e)
        finally:
            self.events.publish(SIGNED_OUT, {"access_token": token})

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        return self.events.subscribe(callback)

    # Rows

    def select_rows(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Tuple[str, bool]] = None,
    ) -> List[Dict[str, Any]]:
        try:
            query = self.client.table(table).select("*")
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            if order:
                column, descending = order
                query = query.order(column, desc=descending)
            result = query.execute()
        except Exception as e:
            raise classify_error(e)
        return result.data or []

    def insert_row(self, table: str, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = self.client.table(table).insert(data).execute()
        except Exception as e:
            raise classify_error(e)
        if not result.data:
            raise BackendError(f"Failed to insert into {table}")
        return result.data[0]

    def update_row(self, table: str, row_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = self.client.table(table)\
                .update(data)\
                .eq("id", row_id)\
                .execute()
        except Exception as e:
            raise classify_error(e)
        if not result.data:
            raise NotFoundError(f"No row {row_id} in {table}")
        return result.data[0]

    def delete_row(self, table: str, row_id: str) -> None:
        try:
            result = self.client.table(table)\
                .delete()\
                .eq("id", row_id)\
                .execute()
        except Exception as e:
            raise classify_error(e)
        if not result.data:
            raise NotFoundError(f"No row {row_id} in {table}")

    # Storage

    def upload_blob(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        try:
            self.client.storage.from_(bucket).upload(
                path=path,
                file=content,
                file_options={
                    "content-type": content_type,
                    "cache-control": "3600",
                    "upsert": "false",
                },
            )
        except Exception as e:
            raise classify_error(e)
        return path

    def get_public_url(self, bucket: str, path: str) -> str:
        url = self.client.storage.from_(bucket).get_public_url(path)
        return url.rstrip("?")


def get_backend(supabase: Client = Depends(get_supabase)) -> Backend:
    return Backend(supabase)


def get_service_backend(supabase: Client = Depends(get_service_supabase)) -> Backend:
    """Backend on the service-role client. Only for routes already gated on role=admin."""
    return Backend(supabase)
