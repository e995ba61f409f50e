from datetime import date

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field
from sqlalchemy.orm import Session

from campus_scheduler.auth.credentials import Principal
from campus_scheduler.auth.dependencies import require_party, require_professor
from campus_scheduler.database import get_db
from campus_scheduler.routes.schemas import ApiModel, AvailabilityResponse, envelope
from campus_scheduler.services.slot_publication import SlotPublisher

router = APIRouter(tags=['availability'])


class CreateAvailabilityRequest(ApiModel):
    slot_date: date | None = Field(default=None, alias='date')
    start_time: str | None = None
    end_time: str | None = None
    duration: int | None = None


def _serialize(slots) -> list[AvailabilityResponse]:
    return [AvailabilityResponse.model_validate(slot) for slot in slots]


@router.post('', status_code=status.HTTP_201_CREATED)
def create_availability(
    data: CreateAvailabilityRequest,
    principal: Principal = Depends(require_professor),
    db: Session = Depends(get_db),
):
    slot = SlotPublisher(db).create_availability(
        principal,
        slot_date=data.slot_date,
        start_time=data.start_time,
        end_time=data.end_time,
        duration=data.duration,
    )
    return envelope(AvailabilityResponse.model_validate(slot), message='Availability created successfully')


@router.get('/my')
def list_my_availability(
    principal: Principal = Depends(require_professor),
    db: Session = Depends(get_db),
):
    return envelope(_serialize(SlotPublisher(db).list_professor_availability(principal)))


@router.get('/professor/{professor_id}')
def list_professor_availability(
    professor_id: int,
    principal: Principal = Depends(require_party),
    db: Session = Depends(get_db),
):
    return envelope(_serialize(SlotPublisher(db).list_professor_availability(principal, professor_id)))


@router.get('/professor/{professor_id}/available')
def list_available_slots(
    professor_id: int,
    on_date: date | None = Query(default=None, alias='date'),
    principal: Principal = Depends(require_party),
    db: Session = Depends(get_db),
):
    del principal
    return envelope(_serialize(SlotPublisher(db).list_available_slots(professor_id, on_date=on_date)))


@router.delete('/{availability_id}')
def delete_availability(
    availability_id: int,
    principal: Principal = Depends(require_professor),
    db: Session = Depends(get_db),
):
    SlotPublisher(db).delete_availability(principal, availability_id)
    return envelope(message='Availability slot deleted successfully')
