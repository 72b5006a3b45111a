from fastapi import APIRouter, Depends, Path, Request, status

from app.schemas.event_schemas import CreateEventRequest, UpdateEventRequest
from app.services.event_service import EventService, get_event_service
from app.utils.responses import ResponseBuilder

events_router = APIRouter()


@events_router.post(
    "/",
    response_model=None,
    status_code=status.HTTP_201_CREATED,
    summary="Create an event",
    description="Create an event and generate its reminder schedule.",
)
async def create_event(
    request: Request,
    event_data: CreateEventRequest,
    event_service: EventService = Depends(get_event_service),
):
    event_response = await event_service.create_event(event_data)
    return ResponseBuilder.success(
        request=request,
        data=event_response.model_dump(by_alias=True),
        message="Event created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@events_router.get(
    "/{event_id}",
    response_model=None,
    status_code=status.HTTP_200_OK,
    summary="Get an event",
)
async def get_event(
    request: Request,
    event_id: int = Path(..., ge=1),
    event_service: EventService = Depends(get_event_service),
):
    event_response = await event_service.get_event(event_id)
    return ResponseBuilder.success(
        request=request,
        data=event_response.model_dump(by_alias=True),
        message="Event retrieved successfully",
    )


@events_router.patch(
    "/{event_id}",
    response_model=None,
    status_code=status.HTTP_200_OK,
    summary="Update an event",
    description="Partially update an event. Changing the target date or time regenerates its reminders.",
)
async def update_event(
    request: Request,
    event_data: UpdateEventRequest,
    event_id: int = Path(..., ge=1),
    event_service: EventService = Depends(get_event_service),
):
    event_response = await event_service.update_event(event_id, event_data)
    return ResponseBuilder.success(
        request=request,
        data=event_response.model_dump(by_alias=True),
        message="Event updated successfully",
    )


@events_router.delete(
    "/{event_id}",
    response_model=None,
    status_code=status.HTTP_200_OK,
    summary="Delete an event",
    description="Delete an event together with all of its notifications.",
)
async def delete_event(
    request: Request,
    event_id: int = Path(..., ge=1),
    event_service: EventService = Depends(get_event_service),
):
    await event_service.delete_event(event_id)
    return ResponseBuilder.success(
        request=request,
        data={"id": event_id},
        message="Event deleted successfully",
    )
