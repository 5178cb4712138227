# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Emergency reporting, listing, accept and decline.
Thin HTTP layer — delegates ALL logic to EmergencyService.
"""

from fastapi import APIRouter, Depends, HTTPException

from relief_service.core.dependencies import get_emergency_service
from relief_service.core.errors import NotFoundError, ValidationError
from relief_service.schemas import EmergencyCreate, EmergencyOut, EmergencyStats, VolunteerAction
from relief_service.services.emergency_service import EmergencyService

router = APIRouter(prefix="/api/v1", tags=["Emergencies"])


@router.get("/emergencies", response_model=list[EmergencyOut])
def list_emergencies(service: EmergencyService = Depends(get_emergency_service)):
    """Every reported emergency, oldest first. Empty list when none."""
    return [EmergencyOut(**e.model_dump()) for e in service.list_emergencies()]


@router.post("/emergencies", status_code=201, response_model=EmergencyOut)
def create_emergency(payload: EmergencyCreate,
                     service: EmergencyService = Depends(get_emergency_service)):
    try:
        emergency = service.create_emergency(
            title=payload.title,
            description=payload.description,
            reporter=payload.reporter,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return EmergencyOut(**emergency.model_dump())


@router.get("/emergencies/stats/summary", response_model=EmergencyStats)
def get_summary_stats(service: EmergencyService = Depends(get_emergency_service)):
    return service.get_summary_stats()


@router.get("/emergencies/{emergency_id}", response_model=EmergencyOut)
def get_emergency(emergency_id: str,
                  service: EmergencyService = Depends(get_emergency_service)):
    try:
        return EmergencyOut(**service.get_emergency(emergency_id).model_dump())
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/emergencies/{emergency_id}/accept", response_model=EmergencyOut)
def accept_emergency(emergency_id: str, payload: VolunteerAction,
                     service: EmergencyService = Depends(get_emergency_service)):
    """Volunteer accepts an emergency. A second accept by the same name is rejected."""
    try:
        emergency = service.accept_emergency(emergency_id, payload.volunteer_name)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return EmergencyOut(**emergency.model_dump())


@router.post("/emergencies/{emergency_id}/decline", response_model=EmergencyOut)
def decline_emergency(emergency_id: str, payload: VolunteerAction,
                      service: EmergencyService = Depends(get_emergency_service)):
    """Volunteer withdraws; the emergency reverts to pending when nobody is left."""
    try:
        emergency = service.decline_emergency(emergency_id, payload.volunteer_name)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return EmergencyOut(**emergency.model_dump())
