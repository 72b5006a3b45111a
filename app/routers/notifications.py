from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, status

from app.schemas.notification_schemas import (
    DispatchSummaryResponse,
    NotificationListQueryParams,
    RetryNotificationResponse,
)
from app.services.notification_service import (
    NotificationService,
    get_notification_service,
)
from app.utils.responses import ResponseBuilder

notifications_router = APIRouter()


@notifications_router.get(
    "/",
    response_model=None,
    status_code=status.HTTP_200_OK,
    summary="List notifications",
    description="Paginated notification rows, newest scheduled date first, optionally filtered by status.",
)
async def list_notifications(
    request: Request,
    query_params: Annotated[NotificationListQueryParams, Depends()],
    notification_service: NotificationService = Depends(get_notification_service),
):
    items, total = await notification_service.list_notifications(query_params)
    return ResponseBuilder.paginated(
        request=request,
        data=items,
        page=query_params.page,
        per_page=query_params.limit,
        total=total,
        message=f"Retrieved {len(items)} notification{'s' if len(items) != 1 else ''}",
    )


@notifications_router.get(
    "/stats",
    response_model=None,
    status_code=status.HTTP_200_OK,
    summary="Notification counts by status",
)
async def get_notification_stats(
    request: Request,
    notification_service: NotificationService = Depends(get_notification_service),
):
    stats = await notification_service.get_stats()
    return ResponseBuilder.success(
        request=request,
        data=stats.model_dump(by_alias=True),
        message="Notification statistics retrieved successfully",
    )


@notifications_router.post(
    "/send-today",
    response_model=None,
    status_code=status.HTTP_200_OK,
    summary="Send today's pending notifications now",
    description="Send every pending notification scheduled for today regardless of its time.",
)
async def send_pending_for_today(
    request: Request,
    notification_service: NotificationService = Depends(get_notification_service),
):
    summary = await notification_service.send_pending_for_today()
    return ResponseBuilder.success(
        request=request,
        data=DispatchSummaryResponse(
            total=summary.total,
            sent=summary.sent,
            failed=summary.failed,
            skipped=summary.skipped,
        ).model_dump(by_alias=True),
        message=f"Sent {summary.sent} of {summary.total} pending notifications",
    )


@notifications_router.get(
    "/{notification_id}",
    response_model=None,
    status_code=status.HTTP_200_OK,
    summary="Get a notification",
)
async def get_notification(
    request: Request,
    notification_id: int = Path(..., ge=1),
    notification_service: NotificationService = Depends(get_notification_service),
):
    notification = await notification_service.get_notification(notification_id)
    return ResponseBuilder.success(
        request=request,
        data=notification.model_dump(by_alias=True),
        message="Notification retrieved successfully",
    )


@notifications_router.post(
    "/{notification_id}/retry",
    response_model=None,
    status_code=status.HTTP_200_OK,
    summary="Retry a failed notification",
    description="Resend a failed notification immediately, ignoring the automatic retry limit.",
)
async def retry_notification(
    request: Request,
    notification_id: int = Path(..., ge=1),
    notification_service: NotificationService = Depends(get_notification_service),
):
    message = await notification_service.retry_notification(notification_id)
    return ResponseBuilder.success(
        request=request,
        data=RetryNotificationResponse(message=message).model_dump(by_alias=True),
        message=message,
    )
