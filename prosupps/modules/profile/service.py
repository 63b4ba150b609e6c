from typing import Any, Dict, Optional, Tuple
from datetime import datetime, timezone
import logging

from fastapi import HTTPException, UploadFile

from prosupps.config import settings
from prosupps.core.errors import BackendError, ValidationError
from prosupps.database.backend import Backend, USER_UPDATED
from prosupps.modules.images.storage import ImageStorage, random_filename
from prosupps.modules.profile.models import ROLE_USER
from prosupps.modules.profile.schemas import ProfileResponse

logger = logging.getLogger(__name__)

TABLE = "users"


class ProfileService:
    def __init__(self, backend: Backend):
        self.backend = backend
        self.avatars = ImageStorage(backend, settings.avatars_bucket, settings.avatar_max_bytes)

    def get_profile(self, user_id: str) -> Optional[ProfileResponse]:
        """Profile row for a user, or None when it has not been created yet"""
        rows = self.backend.select_rows(TABLE, {"id": user_id})
        if not rows:
            return None
        return ProfileResponse(**rows[0])

    def ensure_profile(self, user: Dict[str, Any]) -> Tuple[ProfileResponse, bool]:
        """Create the profile row on first login. Returns (profile, created)."""
        existing = self.get_profile(user["id"])
        if existing:
            return existing, False
        metadata = user.get("user_metadata") or {}
        try:
            row = self.backend.insert_row(TABLE, {
                "id": user["id"],
                "email": user["email"],
                "full_name": metadata.get("full_name") or "",
                "avatar_url": metadata.get("avatar_url") or None,
                "role": ROLE_USER,
            })
        except BackendError as e:
            # A concurrent first login may have inserted the row already
            existing = self.get_profile(user["id"])
            if existing:
                return existing, False
            logger.error(f"Failed to create profile for {user['id']}: {e.message}")
            raise HTTPException(status_code=500, detail="Failed to create user profile. Please try again.")
        logger.info(f"Created profile for user {user['id']}")
        return ProfileResponse(**row), True

    async def update_profile(
        self,
        user_id: str,
        full_name: Optional[str],
        avatar: Optional[UploadFile] = None,
    ) -> ProfileResponse:
        """Update display name and, when a file is given, the avatar"""
        content = None
        if avatar is not None and avatar.filename:
            content = await self.avatars.read_validated(avatar)

        update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
        if full_name is not None:
            update_data["full_name"] = full_name.strip()
        if content is not None:
            key = f"{user_id}-{random_filename(avatar.filename)}"
            update_data["avatar_url"] = self.avatars.upload_file(content, key, avatar.content_type)

        row = self.backend.update_row(TABLE, user_id, update_data)
        profile = ProfileResponse(**row)
        self.backend.events.publish(USER_UPDATED, {"user_id": user_id, "profile": profile.model_dump()})
        return profile


def require_name_or_avatar(full_name: Optional[str], avatar: Optional[UploadFile]) -> None:
    if full_name is None and (avatar is None or not avatar.filename):
        raise ValidationError("Nothing to update", field="full_name")
