"""/v1/samples - named snapshots of a user's profile and loans for demos"""

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from astral_gateway.api.v1.schemas import (
    SampleCreateRequest,
    SampleOverwriteRequest,
    SampleResponse,
    SamplesResponse,
    UserInputSchema,
)
from astral_gateway.api.dependencies import get_now
from astral_gateway.domain.models import user_input_from_dict
from astral_gateway.infrastructure.database.models import SampleProfileRecord
from astral_gateway.infrastructure.database.session import get_db
from astral_gateway.infrastructure.database.repositories import (
    LoanRepository,
    ProfileRepository,
    SampleProfileRepository,
)

router = APIRouter()


def _sample_response(record: SampleProfileRecord) -> SampleResponse:
    return SampleResponse(
        sample_id=record.id,
        name=record.name,
        created_at=record.created_at,
        user_input=UserInputSchema.from_domain(user_input_from_dict(record.user_input)),
        loans=record.loans,
    )


@router.get("/samples", response_model=SamplesResponse)
def list_samples(db: Session = Depends(get_db)):
    """All sample profiles, newest first"""
    return SamplesResponse(samples=[_sample_response(r) for r in SampleProfileRepository(db).list_samples()])


@router.post("/samples", response_model=SampleResponse, status_code=201)
def create_sample(request_body: SampleCreateRequest, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    """Snapshot a user's current profile and loans under a name"""
    user_input = ProfileRepository(db).get_user_input(request_body.user_id)
    loans = list(LoanRepository(db).get_loans(request_body.user_id).values())

    record = SampleProfileRepository(db).create_sample(request_body.name, user_input, loans, now)
    db.commit()
    return _sample_response(record)


@router.put("/samples/{sample_id}", response_model=SampleResponse)
def overwrite_sample(
    sample_id: str,
    request_body: SampleOverwriteRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Replace a sample's snapshot with a user's current data"""
    repo = SampleProfileRepository(db)
    record = repo.get_sample(sample_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Sample not found")

    user_input = ProfileRepository(db).get_user_input(request_body.user_id)
    loans = list(LoanRepository(db).get_loans(request_body.user_id).values())
    repo.overwrite_sample(record, user_input, loans, now)
    db.commit()
    return _sample_response(record)


@router.delete("/samples/{sample_id}", status_code=204)
def delete_sample(sample_id: str, db: Session = Depends(get_db)):
    if not SampleProfileRepository(db).delete_sample(sample_id):
        raise HTTPException(status_code=404, detail="Sample not found")
    db.commit()
    return Response(status_code=204)
