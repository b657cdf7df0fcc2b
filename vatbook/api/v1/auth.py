from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from datetime import timedelta
from vatbook.core.dependencies import get_db, get_current_user
from vatbook.core.security import create_access_token
from vatbook.core.config import settings
from vatbook.models.user import User
from vatbook.services.user_service import authenticate_user, create_user
from vatbook.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    Logout,
    RegisterRequest,
    RegisterResponse,
    Token,
)
from vatbook.logger_config import logger

router = APIRouter()


def _issue_token(user: User) -> str:
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return create_access_token(
        data={"sub": user.email, "user_id": user.id},
        expires_delta=access_token_expires
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    register_data: RegisterRequest,
    db: Session = Depends(get_db)
):
    """
    Sign up with email and password. An empty business profile is created
    alongside the account.
    """
    try:
        user = create_user(db=db, email=register_data.email, password=register_data.password)
        logger.info(f"User {user.email} registered successfully")
        return RegisterResponse(id=user.id, email=user.email)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.post("/login", response_model=LoginResponse)
def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Login endpoint - Authenticate user and return JWT token.
    """
    logger.info(f"Login attempt for email: {login_data.email}")

    user = authenticate_user(db, login_data.email, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password. Please try again."
        )

    logger.info(f"User {user.email} logged in successfully")

    return LoginResponse(
        access_token=_issue_token(user),
        token_type="bearer",
        user=CurrentUser(id=user.id, email=user.email),
    )


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    OAuth2 compatible token endpoint (for Swagger UI authentication).
    """
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password. Please try again.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {"access_token": _issue_token(user), "token_type": "bearer"}


@router.get("/me", response_model=CurrentUser)
def me(current_user: User = Depends(get_current_user)):
    """The signed-in user (id and email)."""
    return CurrentUser(id=current_user.id, email=current_user.email)


@router.get("/logout", response_model=Logout)
def logout():
    """
    Tokens are stateless; the client drops its copy.
    """
    logger.info("User Logged out")
    return Logout(
        message="Logged out Successfully"
    )
