"""Health check endpoint."""

import logging
import time

from fastapi import APIRouter, Depends

from api.dependencies import get_event_parser, get_gateway_cache, get_user_manager
from api.gateway_cache import GatewayCache
from api.models.responses import HealthResponse
from services.parser import AIEventParser
from services.users import UserManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events")


@router.get("/health", response_model=HealthResponse)
async def health_check(
    parser: AIEventParser = Depends(get_event_parser),
    user_manager: UserManager = Depends(get_user_manager),
    gateways: GatewayCache = Depends(get_gateway_cache),
):
    """
    Health check endpoint for monitoring.

    Reports AI parser availability and how many users hold a cached calendar
    connection.
    """
    response = HealthResponse(
        status="OK",
        ai_parser_available=parser.is_available(),
        active_users=len(gateways),
        registered_users=len(user_manager.get_all_users()),
        timestamp=int(time.time() * 1000),
    )
    logger.debug(
        "Health check - AI: %s, active users: %d, registered: %d",
        response.ai_parser_available,
        response.active_users,
        response.registered_users,
    )
    return response
