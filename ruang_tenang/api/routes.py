"""API routes for ruang-tenang gamification"""
import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response

from ruang_tenang.api.models import (
    UserLevelResponse,
    ExpHistoryResponse, ActivityTypesResponse,
    LevelConfigRequest, LevelConfigResponse, LevelConfigListResponse,
    LeaderboardResponse,
    HealthCheckResponse
)
from ruang_tenang.api.auth import verify_api_key, verify_admin_key
from ruang_tenang.api.middleware import limiter
from ruang_tenang.db.connection import db
from ruang_tenang.exceptions import LevelConfigError, RecordNotFoundError, ValidationError
from ruang_tenang.models.gamification import ExpHistoryFilter
from ruang_tenang.services.container import get_container
from ruang_tenang.utils.datetime_helpers import parse_date

logger = logging.getLogger(__name__)

router = APIRouter()


def _gamification_service():
    return get_container().gamification_service


def _level_config_http_error(e: Exception) -> HTTPException:
    if isinstance(e, RecordNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, LevelConfigError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    logger.error(f"Error in level config endpoint: {e}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(e)
    )


# ============================================================================
# Levels and EXP
# ============================================================================

@router.get("/api/v1/users/{user_id}/level", response_model=UserLevelResponse)
@limiter.limit("30/minute")
async def get_user_level(
    request: Request,
    user_id: int,
    api_key: str = Depends(verify_api_key)
):
    """Get user level, badge and progress to the next level (Rate limit: 30/minute)"""
    try:
        level_data = await _gamification_service().get_user_level(user_id)
        return UserLevelResponse(**level_data)

    except RecordNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user_id} not found"
        )
    except Exception as e:
        logger.error(f"Error getting user level: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.get("/api/v1/users/{user_id}/exp-history", response_model=ExpHistoryResponse)
@limiter.limit("30/minute")
async def get_exp_history(
    request: Request,
    user_id: int,
    activity_type: Optional[str] = None,
    start_date: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(default=None, description="YYYY-MM-DD, inclusive"),
    page: int = 1,
    limit: int = 10,
    api_key: str = Depends(verify_api_key)
):
    """
    Get a user's EXP history, newest first

    Dates are calendar days in the activity timezone; malformed dates are ignored.
    Rate limit: 30/minute
    """
    try:
        history_filter = ExpHistoryFilter(
            user_id=user_id,
            activity_type=activity_type or None,
            start_date=parse_date(start_date),
            end_date=parse_date(end_date),
            page=page,
            limit=limit,
        )
        history_page = await _gamification_service().get_exp_history(history_filter)
        return ExpHistoryResponse(**history_page.model_dump())

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.user_message
        )
    except Exception as e:
        logger.error(f"Error getting EXP history: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.get("/api/v1/exp-history/activity-types", response_model=ActivityTypesResponse)
@limiter.limit("30/minute")
async def get_exp_activity_types(
    request: Request,
    api_key: str = Depends(verify_api_key)
):
    """Activity types present in EXP history, for history filters (Rate limit: 30/minute)"""
    try:
        activity_types = await _gamification_service().get_activity_types()
        return ActivityTypesResponse(activity_types=activity_types)

    except Exception as e:
        logger.error(f"Error getting activity types: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.get("/api/v1/leaderboard", response_model=LeaderboardResponse)
@limiter.limit("30/minute")
async def get_leaderboard(
    request: Request,
    limit: Optional[int] = None,
    api_key: str = Depends(verify_api_key)
):
    """Top users by EXP with level badges (Rate limit: 30/minute)"""
    try:
        entries = await _gamification_service().get_leaderboard(limit)
        return LeaderboardResponse(entries=entries, count=len(entries))

    except Exception as e:
        logger.error(f"Error getting leaderboard: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


# ============================================================================
# Level configuration
# ============================================================================

@router.get("/api/v1/level-configs", response_model=LevelConfigListResponse)
@limiter.limit("30/minute")
async def list_level_configs(
    request: Request,
    api_key: str = Depends(verify_api_key)
):
    """All configured levels, level ascending (Rate limit: 30/minute)"""
    try:
        configs = await _gamification_service().list_level_configs()
        levels = [LevelConfigResponse.from_config(c) for c in configs]
        return LevelConfigListResponse(levels=levels, count=len(levels))

    except Exception as e:
        raise _level_config_http_error(e)


@router.post(
    "/api/v1/admin/level-configs",
    response_model=LevelConfigResponse,
    status_code=status.HTTP_201_CREATED
)
@limiter.limit("10/minute")
async def create_level_config(
    request: Request,
    payload: LevelConfigRequest,
    api_key: str = Depends(verify_admin_key)
):
    """Add a level to the ladder (Rate limit: 10/minute)"""
    try:
        created = await _gamification_service().create_level_config(payload.to_config())
        return LevelConfigResponse.from_config(created)

    except Exception as e:
        raise _level_config_http_error(e)


@router.put("/api/v1/admin/level-configs/{config_id}", response_model=LevelConfigResponse)
@limiter.limit("10/minute")
async def update_level_config(
    request: Request,
    config_id: int,
    payload: LevelConfigRequest,
    api_key: str = Depends(verify_admin_key)
):
    """Replace a level (Rate limit: 10/minute)"""
    try:
        updated = await _gamification_service().update_level_config(config_id, payload.to_config())
        return LevelConfigResponse.from_config(updated)

    except Exception as e:
        raise _level_config_http_error(e)


@router.delete("/api/v1/admin/level-configs/{config_id}")
@limiter.limit("10/minute")
async def delete_level_config(
    request: Request,
    config_id: int,
    api_key: str = Depends(verify_admin_key)
):
    """Remove a level (Rate limit: 10/minute)"""
    try:
        await _gamification_service().delete_level_config(config_id)
        return {"id": config_id, "deleted": True}

    except Exception as e:
        raise _level_config_http_error(e)


# ============================================================================
# Operations
# ============================================================================

@router.get("/api/health", response_model=HealthCheckResponse)
@limiter.limit("60/minute")
async def health_check(request: Request):
    """Health check endpoint (Rate limit: 60/minute for monitoring systems)"""
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1")
                await cur.fetchone()

        db_status = "connected"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "disconnected"

    return HealthCheckResponse(
        status="healthy" if db_status == "connected" else "degraded",
        database=db_status,
        timestamp=datetime.now()
    )


@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Exposes award, level fallback and HTTP metrics in Prometheus text format.
    """
    from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
