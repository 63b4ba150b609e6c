import hashlib
import logging
import time
from typing import Any, Dict, Optional

from fastapi import HTTPException, UploadFile

from prosupps.config import settings
from prosupps.core.errors import AuthorizationError, BackendError, NotFoundError, ValidationError
from prosupps.database.backend import Backend, USER_UPDATED
from prosupps.modules.auth.schemas import LoginRequest, RegisterRequest, RegisterResponse, TokenResponse
from prosupps.modules.images.storage import ImageStorage
from prosupps.modules.profile.models import ROLE_ADMIN
from prosupps.modules.profile.schemas import ProfileResponse
from prosupps.modules.profile.service import ProfileService

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500

VERIFY_EMAIL_REDIRECT = "/login?message=Please check your email to verify your account before logging in."


def redirect_for(profile: Optional[ProfileResponse]) -> str:
    """Where a signed-in user lands: the dashboard for admins, home otherwise"""
    if profile is not None and profile.role == ROLE_ADMIN:
        return "/admin"
    return "/"


def _cache_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def forget_token(token: str) -> None:
    _AUTH_USER_CACHE.pop(_cache_key(token), None)


class AuthService:
    def __init__(self, backend: Backend):
        self.backend = backend
        self.profiles = ProfileService(backend)

    async def register(self, register_data: RegisterRequest, avatar: Optional[UploadFile] = None) -> RegisterResponse:
        """Register a new user using Supabase Auth, uploading the avatar first"""
        if register_data.password != register_data.confirm_password:
            raise ValidationError("Passwords do not match", field="confirm_password")

        avatars = ImageStorage(self.backend, settings.avatars_bucket, settings.avatar_max_bytes)
        avatar_url = None
        if avatar is not None and avatar.filename:
            content = await avatars.read_validated(avatar)
            try:
                avatar_url = avatars.upload_file(content, avatars.key_for(avatar.filename), avatar.content_type)
            except AuthorizationError:
                raise HTTPException(status_code=401, detail="Unauthorized: Please check your authentication status")
            except NotFoundError:
                raise HTTPException(status_code=500, detail="Storage bucket not found. Please contact support.")

        profile_seed: Dict[str, Any] = {"avatar_url": avatar_url}
        if register_data.full_name:
            profile_seed["full_name"] = register_data.full_name

        try:
            user = self.backend.sign_up(register_data.email, register_data.password, profile_seed)
        except BackendError as e:
            error_message = e.message
            if "email rate limit exceeded" in error_message.lower():
                raise HTTPException(status_code=429, detail="Too many signup attempts. Please try again later.")
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="This email is already registered. Please try logging in.")
            raise

        logger.info(f"Registered user {user['id']}")
        return RegisterResponse(
            user_id=user["id"],
            email=user["email"] or register_data.email,
            message="Please check your email to verify your account before logging in.",
            redirect_to=VERIFY_EMAIL_REDIRECT,
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate, create the profile row on first login and pick the landing page"""
        try:
            session = self.backend.sign_in(login_data.email, login_data.password)
        except BackendError as e:
            error_message = e.message or ""
            if isinstance(e, AuthorizationError) or "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail=error_message or "Invalid email or password")
            raise

        user = session["user"]
        profile, created = self.profiles.ensure_profile(user)
        self.backend.events.publish(USER_UPDATED, {"user_id": user["id"], "profile": profile.model_dump()})
        logger.info(f"User {user['id']} logged in" + (" (new profile)" if created else ""))

        return TokenResponse(
            access_token=session["access_token"],
            token_type="bearer",
            user_id=user["id"],
            email=user["email"] or login_data.email,
            profile=profile,
            redirect_to=redirect_for(profile),
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        cache_key = _cache_key(token)
        now = time.monotonic()
        if cache_key in _AUTH_USER_CACHE:
            user_data, expiry = _AUTH_USER_CACHE[cache_key]
            if now < expiry:
                return user_data
            del _AUTH_USER_CACHE[cache_key]
        try:
            user_data = self.backend.get_current_user(token)
        except AuthorizationError:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
            _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
        return user_data

    def logout(self, token: str) -> None:
        forget_token(token)
        self.backend.sign_out(token)
