"""FastAPI dependencies for shared resources."""

from collections.abc import Callable
from functools import lru_cache

from api.gateway_cache import GatewayCache
from core import ai_client
from core.config import GATEWAY_CACHE_SIZE
from models.users import User
from services.calendar import CalendarGateway, GoogleCalendarGateway
from services.parser import AIEventParser
from services.users import UserManager

GatewayFactory = Callable[[User], CalendarGateway]


@lru_cache
def get_user_manager() -> UserManager:
    """Single registry shared by every router."""
    return UserManager()


@lru_cache
def get_event_parser() -> AIEventParser:
    client = ai_client.get_ai_client()
    return AIEventParser(ai_client.complete if client is not None else None)


@lru_cache
def get_gateway_cache() -> GatewayCache:
    return GatewayCache(GATEWAY_CACHE_SIZE)


def get_gateway_factory() -> GatewayFactory:
    """How a gateway is built for a user not in the cache."""
    return GoogleCalendarGateway
