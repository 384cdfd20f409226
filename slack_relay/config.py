from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings

TEMPLATE_PLACEHOLDERS = {"message": "", "sent_at": ""}


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    APP_ENV: str = "development"
    SERVICE_MESSAGE: str = "Slack Relay API"
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    # Slack Web API
    SLACK_BOT_TOKEN: str = ""
    SLACK_API_BASE: str = "https://slack.com/api"
    SLACK_TIMEOUT_SECONDS: float = 10.0
    SLACK_MAX_ATTEMPTS: int = 3
    SLACK_RETRY_WAIT_SECONDS: float = 0.5
    SLACK_PAGE_LIMIT: int = 200  # Slack's maximum for conversations.list
    SLACK_MAX_PAGES: int = 1000
    SLACK_CONVERSATION_TYPES: str = "public_channel,private_channel,im,mpim"
    SLACK_EXCLUDE_ARCHIVED: bool = True

    # Directory
    DIRECTORY_CACHE_TTL_SECONDS: float = 60.0
    DIRECTORY_ALLOW_PARTIAL: bool = False  # serve channels-only when users.list fails

    # Dispatch
    DISPATCH_CONCURRENCY: int = 10
    DISPATCH_TEXT_TEMPLATE: str = "{message}"
    DISPATCH_TIMEZONE: str = "America/Los_Angeles"
    DISPATCH_USERNAME: str = ""

    @field_validator("DISPATCH_TIMEZONE")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError, OSError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @field_validator("DISPATCH_TEXT_TEMPLATE")
    @classmethod
    def _renderable_template(cls, value: str) -> str:
        try:
            value.format(**TEMPLATE_PLACEHOLDERS)
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(
                f"Template may only use {{message}} and {{sent_at}}: {value!r}"
            ) from e
        return value


settings = Settings()
