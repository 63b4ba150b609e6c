from fastapi import APIRouter, Depends, File, Form, UploadFile
from prosupps.core.dependencies import (
    get_auth_service, get_current_token, get_current_user, get_profile_service
)
from prosupps.modules.auth.schemas import (
    CurrentUserResponse, LoginRequest, RegisterRequest, RegisterResponse, TokenResponse
)
from prosupps.modules.auth.service import AuthService, redirect_for
from prosupps.modules.profile.service import ProfileService
from pydantic import ValidationError as PydanticValidationError
from prosupps.core.errors import ValidationError
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=RegisterResponse, status_code=201)
async def signup(
    email: str = Form(...),
    password: str = Form(...),
    confirm_password: str = Form(...),
    full_name: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user; the avatar is uploaded before the account is created"""
    try:
        register_data = RegisterRequest(
            email=email,
            password=password,
            confirm_password=confirm_password,
            full_name=full_name,
        )
    except PydanticValidationError:
        raise ValidationError("Please enter a valid email address", field="email")
    return await service.register(register_data, avatar)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login, create the profile on first login and get the landing page"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and drop the session"""
    service.logout(token)
    return {"message": "Logged out successfully", "redirect_to": "/"}


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    current_user: Dict = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service)
):
    """Current user and profile; login/signup pages use redirect_to to bounce signed-in users."""
    profile = profiles.get_profile(current_user["id"])
    return CurrentUserResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        profile=profile,
        redirect_to=redirect_for(profile),
    )
