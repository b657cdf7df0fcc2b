from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from vatbook.core.dependencies import get_db, get_current_user
from vatbook.models.user import User
from vatbook.schemas.user import ProfileResponse, ProfileUpdate
from vatbook.services.user_service import get_profile, save_profile
from vatbook.logger_config import logger

router = APIRouter()


@router.get("", response_model=ProfileResponse)
def read_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    profile = get_profile(db, current_user.id)
    if not profile:
        return ProfileResponse(user_id=current_user.id, email=current_user.email)
    return ProfileResponse.model_validate(profile)


@router.put("", response_model=ProfileResponse)
def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create or replace the business profile shown on invoices."""
    try:
        profile = save_profile(
            db,
            user_id=current_user.id,
            email=data.email or current_user.email,
            full_name=data.full_name,
            business_name=data.business_name,
            business_type=data.business_type,
            phone=data.phone,
            location=data.location,
            logo_url=data.logo_url,
        )
        return ProfileResponse.model_validate(profile)
    except ValueError as e:
        logger.error(f"Error saving profile: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
