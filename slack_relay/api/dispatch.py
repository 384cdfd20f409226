from fastapi import APIRouter, Depends

from slack_relay.api.deps import get_dispatcher
from slack_relay.dispatch.dispatcher import Dispatcher
from slack_relay.schemas.common import ErrorOut
from slack_relay.schemas.dispatch import (
    DispatchReportOut,
    DispatchRequest,
    DispatchResultOut,
    DispatchSummaryOut,
)

router = APIRouter(tags=["dispatch"])


@router.post(
    "/dispatch",
    response_model=DispatchReportOut,
    responses={400: {"model": ErrorOut}},
)
async def dispatch_message(
    req: DispatchRequest,
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    """Send one message to each requested destination.

    Individual failures are reported per destination; the call itself still
    succeeds.
    """
    report = await dispatcher.dispatch(req.message, req.destinations)
    return DispatchReportOut(
        results=[DispatchResultOut.model_validate(r) for r in report.results],
        summary=DispatchSummaryOut(
            successful=report.successful,
            failed=report.failed,
            total=report.total,
        ),
    )
