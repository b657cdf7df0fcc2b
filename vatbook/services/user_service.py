from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional
from vatbook.models.user import User, UserProfile, BusinessType
from vatbook.core.security import get_password_hash, verify_password
from vatbook.logger_config import logger


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    """Get user by database ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get user by email (case-insensitive)."""
    return db.query(User).filter(User.email == email.strip().lower()).first()


def create_user(db: Session, email: str, password: str) -> User:
    """Sign up a new user with an empty business profile."""
    email = email.strip().lower()
    if get_user_by_email(db, email):
        raise ValueError("This email is already registered. Please sign in instead.")

    user = User(email=email, password_hash=get_password_hash(password))
    db.add(user)
    db.flush()  # Flush to get user.id

    profile = UserProfile(user_id=user.id, email=email)
    db.add(profile)

    try:
        db.commit()
        db.refresh(user)
        return user
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating user: {str(e)}")
        raise ValueError("Failed to create user. Email may already exist.")


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = get_user_by_email(db, email)
    if not user:
        logger.warning(f"Login failed, unknown email: {email}")
        return None
    if not verify_password(password, user.password_hash):
        logger.warning(f"Login failed, bad password for: {email}")
        return None
    return user


def get_profile(db: Session, user_id: int) -> Optional[UserProfile]:
    return db.query(UserProfile).filter(UserProfile.user_id == user_id).first()


def save_profile(
    db: Session,
    user_id: int,
    full_name: str,
    business_name: str,
    business_type: BusinessType,
    phone: str,
    location: str,
    email: Optional[str] = None,
    logo_url: Optional[str] = None,
) -> UserProfile:
    """Create or replace the user's business profile."""
    profile = get_profile(db, user_id)
    if profile is None:
        profile = UserProfile(user_id=user_id)
        db.add(profile)

    if email is not None:
        profile.email = email
    profile.full_name = full_name
    profile.business_name = business_name
    profile.business_type = business_type
    profile.phone = phone
    profile.location = location
    profile.logo_url = logo_url or None

    try:
        db.commit()
        db.refresh(profile)
        logger.info(f"Profile saved for user {user_id}")
        return profile
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error saving profile for user {user_id}: {str(e)}")
        raise ValueError("Failed to save profile.")
