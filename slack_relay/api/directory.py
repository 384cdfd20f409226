import structlog
from fastapi import APIRouter, Depends

from slack_relay.api.deps import get_directory_service, get_slack_client
from slack_relay.directory.service import DirectoryService
from slack_relay.schemas.common import ErrorOut
from slack_relay.schemas.directory import DestinationOut
from slack_relay.slack.client import SlackClient

router = APIRouter(tags=["directory"])
logger = structlog.get_logger()


@router.get(
    "/directory",
    response_model=list[DestinationOut],
    responses={500: {"model": ErrorOut}},
)
async def get_directory(service: DirectoryService = Depends(get_directory_service)):
    """List every channel, DM and user the bot can post to."""
    directory = await service.get_directory()
    return [DestinationOut.model_validate(d) for d in directory]


@router.get("/auth/test", responses={500: {"model": ErrorOut}})
async def auth_test(client: SlackClient = Depends(get_slack_client)):
    """Check the bot token against Slack's auth.test."""
    data = await client.auth_test()
    logger.info("slack.auth_test", ok=data.get("ok"), team=data.get("team"))
    return data
