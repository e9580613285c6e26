"""
Runtime Settings API

Client-facing lookup of active settings plus the admin list/upsert/update
endpoints.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request

from runtime_config.api.schemas.error import ErrorResponse
from runtime_config.api.v1.converters import (
    convert_runtime_setting_data_to_response,
    convert_runtime_setting_page_to_response,
    convert_runtime_setting_update_request,
    convert_runtime_setting_upsert_request,
)
from runtime_config.api.v1.schemas.requests import (
    RuntimeSettingUpdateRequest,
    RuntimeSettingUpsertRequest,
)
from runtime_config.api.v1.schemas.responses import (
    ActiveSettingsResponse,
    RuntimeSettingListResponse,
    RuntimeSettingResponse,
)
from runtime_config.core.error_codes import RequestParamErrorCode
from runtime_config.core.exceptions import RequestParamException
from runtime_config.core.logger import get_logger
from runtime_config.models import SETTING_PLATFORMS
from runtime_config.services.runtime_config_engine import (
    RuntimeConfigEngine,
    get_runtime_config_engine,
)
from runtime_config.services.runtime_setting_models import (
    ActiveSettingsQuery,
    RuntimeSettingListQuery,
    WriteContext,
)
from runtime_config.services.version_codec import is_valid_version

logger = get_logger(__name__)

router = APIRouter(prefix="/runtime-settings", tags=["runtime-settings"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid parameters or payload"},
    500: {"model": ErrorResponse, "description": "Store unavailable"},
}


def _first(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value is not None and value.strip():
            return value.strip()
    return None


@router.get(
    "/current",
    response_model=ActiveSettingsResponse,
    summary="Active settings for a client context",
    responses=_ERROR_RESPONSES,
)
async def get_current_settings(
    request: Request,
    environment: Optional[str] = Query(None),
    platform: Optional[str] = Query(None),
    namespace: Optional[str] = Query(None),
    channel: Optional[str] = Query(None),
    app_version: Optional[str] = Query(None, alias="appVersion"),
    version: Optional[str] = Query(None, description="Alias for appVersion"),
    app_version_code: Optional[int] = Query(None, alias="appVersionCode", ge=0),
    include_draft: bool = Query(False, alias="includeDraft"),
    skip_cache: bool = Query(False, alias="skipCache"),
    rollout_seed: Optional[str] = Query(None, alias="rolloutSeed"),
    header_platform: Optional[str] = Header(None, alias="X-Runtime-Platform"),
    header_environment: Optional[str] = Header(None, alias="X-Runtime-Environment"),
    header_seed: Optional[str] = Header(None, alias="X-Runtime-Rollout-Seed"),
    user_id: Optional[str] = Header(None, alias="X-User-ID"),
    engine: RuntimeConfigEngine = Depends(get_runtime_config_engine),
) -> ActiveSettingsResponse:
    """
    Return ``{namespace: {key: value}}`` visible to the calling client.

    Query parameters win over the ``X-Runtime-*`` headers. The rollout seed
    falls back to the user id and then the client IP so unauthenticated
    clients still get a stable bucket.
    """
    resolved_platform = _first(platform, header_platform)
    if resolved_platform and resolved_platform.lower() not in SETTING_PLATFORMS:
        raise RequestParamException(
            f"Unsupported platform: {resolved_platform}",
            RequestParamErrorCode.INVALID_PARAMETER,
            details={"platform": resolved_platform},
        )

    resolved_version = _first(app_version, version)
    if resolved_version and not is_valid_version(resolved_version):
        raise RequestParamException(
            f"Invalid app version: {resolved_version}",
            RequestParamErrorCode.INVALID_PARAMETER,
            details={"appVersion": resolved_version},
        )

    client_ip = request.client.host if request.client else None
    now = datetime.now(timezone.utc)
    query = ActiveSettingsQuery(
        environment=_first(environment, header_environment),
        platform=resolved_platform,
        namespace=namespace,
        channel=channel,
        app_version=resolved_version,
        app_version_code=app_version_code,
        include_draft=include_draft,
        skip_cache=skip_cache,
        rollout_seed=_first(rollout_seed, header_seed, user_id, client_ip),
        now=now,
    )

    active = await engine.get_active_settings(query)
    logger.debug(
        "Served %d namespaces for env=%s platform=%s",
        len(active),
        query.environment,
        query.platform,
    )
    return ActiveSettingsResponse(
        fetched_at=now,
        environment=query.environment or engine.default_environment,
        platform=(query.platform or engine.default_platform).lower(),
        namespace=query.namespace,
        settings=active,
    )


@router.get(
    "",
    response_model=RuntimeSettingListResponse,
    summary="List runtime settings",
    responses=_ERROR_RESPONSES,
)
async def list_runtime_settings(
    namespace: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    environment: Optional[str] = Query(None),
    platform: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(0, ge=0),
    limit: int = Query(25, ge=1, le=100),
    engine: RuntimeConfigEngine = Depends(get_runtime_config_engine),
) -> RuntimeSettingListResponse:
    result = await engine.list_settings(
        RuntimeSettingListQuery(
            namespace=namespace,
            status=status,
            environment=environment,
            platform=platform,
            search=search,
            page=page,
            limit=limit,
        )
    )
    return convert_runtime_setting_page_to_response(result)


@router.post(
    "",
    response_model=RuntimeSettingResponse,
    summary="Create or update a runtime setting by scope",
    responses=_ERROR_RESPONSES,
)
async def upsert_runtime_setting(
    request: RuntimeSettingUpsertRequest,
    user_id: Optional[str] = Header(None, alias="X-User-ID"),
    engine: RuntimeConfigEngine = Depends(get_runtime_config_engine),
) -> RuntimeSettingResponse:
    logger.info("API: Upserting runtime setting %s/%s", request.namespace, request.key)
    payload = convert_runtime_setting_upsert_request(request)
    result = await engine.upsert_setting(payload, WriteContext(user_id=user_id))
    return convert_runtime_setting_data_to_response(result)


@router.put(
    "/{setting_id}",
    response_model=RuntimeSettingResponse,
    summary="Update a runtime setting by id",
    responses={
        **_ERROR_RESPONSES,
        404: {"model": ErrorResponse, "description": "Setting not found"},
    },
)
async def update_runtime_setting(
    setting_id: str,
    request: RuntimeSettingUpdateRequest,
    user_id: Optional[str] = Header(None, alias="X-User-ID"),
    engine: RuntimeConfigEngine = Depends(get_runtime_config_engine),
) -> RuntimeSettingResponse:
    logger.info("API: Updating runtime setting %s", setting_id)
    payload = convert_runtime_setting_update_request(request)
    result = await engine.update_setting(
        setting_id, payload, WriteContext(user_id=user_id)
    )
    return convert_runtime_setting_data_to_response(result)


__all__ = ["router"]
