from slack_relay.directory.service import DirectoryService, directory_service
from slack_relay.dispatch.dispatcher import Dispatcher, dispatcher
from slack_relay.slack.client import SlackClient, slack_client


async def get_directory_service() -> DirectoryService:
    return directory_service


async def get_dispatcher() -> Dispatcher:
    return dispatcher


async def get_slack_client() -> SlackClient:
    return slack_client
