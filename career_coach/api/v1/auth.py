import logging

from fastapi import APIRouter, Depends, HTTPException, status

from career_coach.core.security import get_store, hash_password, issue_token, require_user_id, verify_password
from career_coach.core.store import CoachStore
from career_coach.schemas.coach import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserOut,
    UserProfileResponse,
)
from career_coach.services import plans

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, store: CoachStore = Depends(get_store)):
    name = payload.name.strip()
    email = payload.email.strip()
    if not name or not email or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")
    if store.get_user_by_email(email) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    try:
        user = store.create_user(name=name, email=email, password_hash=hash_password(payload.password))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered") from exc
    logger.info("user_registered user_id=%s", user["id"])
    return RegisterResponse(
        message="Registered successfully",
        user=UserOut(id=user["id"], name=user["name"], email=user["email"]),
    )


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, store: CoachStore = Depends(get_store)):
    if not payload.email.strip() or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing email or password")

    user = store.get_user_by_email(payload.email)
    if user is None or not verify_password(payload.password, user["password_hash"]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    store.touch_login(user["id"])
    return LoginResponse(
        token=issue_token(user["id"], user["email"]),
        user=UserOut(id=user["id"], name=user["name"], email=user["email"]),
    )


@router.get("/user-profile", response_model=UserProfileResponse)
def user_profile(store: CoachStore = Depends(get_store), user_id: str = Depends(require_user_id)):
    user = store.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return UserProfileResponse(
        id=user["id"],
        name=user["name"],
        email=user["email"],
        registration_date=user["registered_at"],
        last_login=user["last_login"],
        subscription=store.get_subscription(user_id),
        analytics=plans.user_analytics(store, user_id),
    )
