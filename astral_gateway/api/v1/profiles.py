"""GET/PUT /v1/users/{user_id}/profile - buyer's financial inputs"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from astral_gateway.api.v1.schemas import ProfileResponse, UserInputSchema
from astral_gateway.infrastructure.database.session import get_db
from astral_gateway.infrastructure.database.repositories import ProfileRepository

router = APIRouter()


@router.get("/users/{user_id}/profile", response_model=ProfileResponse)
def get_profile(user_id: str, db: Session = Depends(get_db)):
    """Stored inputs, or the default profile for a user who never saved one"""
    user_input = ProfileRepository(db).get_user_input(user_id)
    return ProfileResponse(user_id=user_id, user_input=UserInputSchema.from_domain(user_input))


@router.put("/users/{user_id}/profile", response_model=ProfileResponse)
def update_profile(user_id: str, request_body: UserInputSchema, db: Session = Depends(get_db)):
    ProfileRepository(db).save_user_input(user_id, request_body.to_domain())
    db.commit()
    return ProfileResponse(user_id=user_id, user_input=request_body)
