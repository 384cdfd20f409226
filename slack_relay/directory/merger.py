"""
Directory merger: raw Slack channel and user records -> one Destination list.

Channels keep their upstream order and come first; users follow, minus the
ones that cannot receive a message (deleted, bots, Slackbot).
"""

from collections.abc import Iterable
from dataclasses import dataclass

# Slackbot's fixed user id
SYSTEM_USER_ID = "USLACKBOT"

KIND_CHANNEL = "channel"
KIND_GROUP = "group"
KIND_DIRECT_MESSAGE = "directMessage"
KIND_USER = "user"

# self + the user
USER_MEMBER_COUNT = 2


@dataclass(frozen=True)
class Destination:
    id: str
    display_name: str
    kind: str
    is_private: bool = False
    is_archived: bool = False
    member_count: int | None = None
    secondary_name: str | None = None


Directory = tuple[Destination, ...]


def channel_kind(raw: dict) -> str:
    if raw.get("is_im"):
        return KIND_DIRECT_MESSAGE
    if raw.get("is_mpim"):
        return KIND_GROUP
    if raw.get("is_private"):
        # Slack's legacy name for private channels
        return KIND_GROUP
    return KIND_CHANNEL


def map_channel(raw: dict) -> Destination:
    channel_id = raw["id"]
    return Destination(
        id=channel_id,
        display_name=raw.get("name") or f"Channel {channel_id}",
        kind=channel_kind(raw),
        is_private=bool(raw.get("is_private")),
        is_archived=bool(raw.get("is_archived")),
        member_count=raw.get("num_members"),
    )


def is_addressable_user(raw: dict) -> bool:
    return not raw.get("deleted") and not raw.get("is_bot") and raw.get("id") != SYSTEM_USER_ID


def map_user(raw: dict) -> Destination:
    profile = raw.get("profile") or {}
    handle = raw.get("name") or raw["id"]
    real_name = raw.get("real_name") or profile.get("real_name")
    return Destination(
        id=raw["id"],
        display_name=real_name or handle,
        kind=KIND_USER,
        is_private=True,
        is_archived=False,
        member_count=USER_MEMBER_COUNT,
        secondary_name=profile.get("display_name") or handle,
    )


def merge_directory(channels: Iterable[dict], users: Iterable[dict]) -> Directory:
    """Map and concatenate channels then addressable users, preserving order."""
    mapped_channels = [map_channel(c) for c in channels]
    mapped_users = [map_user(u) for u in users if is_addressable_user(u)]
    return tuple(mapped_channels + mapped_users)
