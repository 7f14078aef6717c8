from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from api.deps import get_db, get_sahha_client
from api.players import (
    apply_outcomes,
    get_player_or_404,
    get_trainer_or_404,
    player_to_entry,
    store_bundle,
)
from api.schemas import (
    HealthDataOut,
    RosterHealthOut,
    SahhaProfileIn,
    SahhaProfileOut,
    ScoresOut,
    SimpleStatusResponse,
    SyncResultOut,
    WebhookAck,
)
from core.models import Player
from core.services.insights.health_data import build_health_data
from core.services.roster import build_roster_view
from core.services.wearables.sahha import (
    DEFAULT_SCORE_TYPES,
    SahhaAPIError,
    SahhaClient,
    parse_insight_bundle,
)
from core.services.wearables.sync import refresh_entry, refresh_roster

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1")

DbSession = Annotated[Session, Depends(get_db)]
Provider = Annotated[Optional[SahhaClient], Depends(get_sahha_client)]


def _refresh_policy(request: Request) -> tuple[timedelta, int]:
    settings = request.app.state.settings
    return timedelta(minutes=settings.insights_stale_after_minutes), settings.roster_refresh_workers


@router.get("/health", response_model=SimpleStatusResponse, tags=["system"])
def health() -> SimpleStatusResponse:
    return SimpleStatusResponse(status="ok")


@router.post("/insights/health-data", response_model=HealthDataOut, tags=["insights"])
def transform_bundle(payload: Annotated[dict[str, Any], Body()]) -> HealthDataOut:
    """Stateless transform: any-casing insight bundle in, health data out."""
    return HealthDataOut.from_health_data(build_health_data(parse_insight_bundle(payload)))


@router.get("/players/{player_id}/health-data", response_model=HealthDataOut, tags=["players"])
def player_health_data(player_id: int, request: Request, db: DbSession, client: Provider) -> HealthDataOut:
    player = get_player_or_404(db, player_id)
    max_age, workers = _refresh_policy(request)
    now = datetime.now(timezone.utc)

    summary = refresh_roster([player_to_entry(player)], client, now=now, max_age=max_age, max_workers=workers)
    apply_outcomes([player], summary.outcomes)
    return HealthDataOut.from_health_data(build_health_data(summary.outcomes[0].bundle, now=now))


@router.post("/players/{player_id}/sync", response_model=SyncResultOut, tags=["players"])
def sync_player(player_id: int, db: DbSession, client: Provider) -> SyncResultOut:
    """Forced refresh, ignoring staleness."""
    player = get_player_or_404(db, player_id)
    if client is None:
        raise HTTPException(status_code=503, detail={"code": "PROVIDER_NOT_CONFIGURED"})
    if not player.sahha_profile_id:
        raise HTTPException(status_code=409, detail={"code": "NO_PROVIDER_PROFILE", "player_id": player_id})

    outcome = refresh_entry(player_to_entry(player), client, datetime.now(timezone.utc))
    if not outcome.refreshed:
        raise HTTPException(status_code=502, detail={"code": "PROVIDER_ERROR", "message": outcome.error})
    store_bundle(player, outcome.bundle, outcome.synced_at)
    return SyncResultOut(
        player_id=player.id,
        refreshed=True,
        synced_at=outcome.synced_at,
        trends=len(outcome.bundle.trends),
        comparisons=len(outcome.bundle.comparisons),
    )


@router.post("/players/{player_id}/sahha-profile", response_model=SahhaProfileOut, status_code=201, tags=["players"])
def create_sahha_profile(player_id: int, payload: SahhaProfileIn, db: DbSession, client: Provider) -> SahhaProfileOut:
    """Register the player with Sahha, link the profile and store the first insights."""
    player = get_player_or_404(db, player_id)
    if client is None:
        raise HTTPException(status_code=503, detail={"code": "PROVIDER_NOT_CONFIGURED"})
    if player.sahha_profile_id:
        raise HTTPException(
            status_code=409,
            detail={"code": "PROFILE_EXISTS", "sahha_profile_id": player.sahha_profile_id},
        )

    try:
        profile = client.create_profile(
            str(player.id),
            age=payload.age,
            sex_at_birth=payload.sex_at_birth,
            weight_lb=payload.weight_lb,
            height_in=payload.height_in,
        )
    except SahhaAPIError as exc:
        raise HTTPException(status_code=502, detail={"code": "PROVIDER_ERROR", "message": str(exc)}) from exc

    profile = profile if isinstance(profile, dict) else {}
    profile_id = str(profile.get("id") or profile.get("profileId") or profile.get("profile_id") or player.id)
    player.sahha_profile_id = profile_id

    # First insights are often empty; a failed fetch still links the profile.
    outcome = refresh_entry(player_to_entry(player), client, datetime.now(timezone.utc))
    store_bundle(player, outcome.bundle, outcome.synced_at)
    logger.info("sahha_profile_linked", extra={"player_id": player.id, "profile_id": profile_id})
    return SahhaProfileOut(
        player_id=player.id,
        sahha_profile_id=profile_id,
        trends=len(outcome.bundle.trends),
        comparisons=len(outcome.bundle.comparisons),
    )


@router.get("/players/{player_id}/scores", response_model=ScoresOut, tags=["players"])
def player_scores(
    player_id: int,
    db: DbSession,
    client: Provider,
    types: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> ScoresOut:
    """Sahha health scores for the player, last seven days unless bounded."""
    player = get_player_or_404(db, player_id)
    if client is None:
        raise HTTPException(status_code=503, detail={"code": "PROVIDER_NOT_CONFIGURED"})
    if not player.sahha_profile_id:
        raise HTTPException(status_code=409, detail={"code": "NO_PROVIDER_PROFILE", "player_id": player_id})

    score_types = [t.strip() for t in (types or "").split(",") if t.strip()] or list(DEFAULT_SCORE_TYPES)
    try:
        scores = client.get_scores(player.sahha_profile_id, types=score_types, start=start, end=end)
    except SahhaAPIError as exc:
        status = 400 if exc.status_code == 400 else 502
        code = "INVALID_PROVIDER_REQUEST" if status == 400 else "PROVIDER_ERROR"
        raise HTTPException(status_code=status, detail={"code": code, "message": str(exc)}) from exc
    return ScoresOut(player_id=player.id, sahha_profile_id=player.sahha_profile_id, scores=scores)


@router.put("/players/{player_id}/insights", response_model=HealthDataOut, tags=["players"])
def replace_player_insights(player_id: int, payload: Annotated[dict[str, Any], Body()], db: DbSession) -> HealthDataOut:
    player = get_player_or_404(db, player_id)
    bundle = parse_insight_bundle(payload)
    now = datetime.now(timezone.utc)
    store_bundle(player, bundle, now)
    return HealthDataOut.from_health_data(build_health_data(bundle, now=now))


@router.get("/trainers/{trainer_id}/roster-health", response_model=RosterHealthOut, tags=["trainers"])
def trainer_roster_health(trainer_id: int, request: Request, db: DbSession, client: Provider) -> RosterHealthOut:
    trainer = get_trainer_or_404(db, trainer_id)
    players = list(trainer.players)
    max_age, workers = _refresh_policy(request)

    view = build_roster_view(
        [player_to_entry(p) for p in players],
        client,
        max_age=max_age,
        max_workers=workers,
    )
    apply_outcomes(players, view.refresh_outcomes)
    return RosterHealthOut.model_validate(view, from_attributes=True)


@router.post("/sahha/webhook", response_model=WebhookAck, tags=["integrations"])
def sahha_webhook(payload: Annotated[dict[str, Any], Body()], db: DbSession, client: Provider) -> WebhookAck:
    """Always acknowledges with 200 so Sahha does not retry."""
    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    profile_id = payload.get("profile_id") or payload.get("profileId") or data.get("profile_id")
    if not profile_id:
        logger.warning("sahha_webhook_missing_profile", extra={"event": payload.get("event") or payload.get("type")})
        return WebhookAck(success=False, message="Missing profile ID in webhook payload")
    if client is None:
        return WebhookAck(success=False, message="Provider not configured", sahha_profile_id=profile_id)

    player = db.execute(select(Player).where(Player.sahha_profile_id == profile_id)).scalars().first()
    try:
        bundle = client.sync_insights(profile_id)
    except Exception as exc:
        logger.warning("sahha_webhook_sync_failed", extra={"profile_id": profile_id, "error": str(exc)})
        return WebhookAck(success=False, message="Webhook received but processing failed", sahha_profile_id=profile_id)

    if player is None:
        logger.warning("sahha_webhook_unknown_profile", extra={"profile_id": profile_id})
        return WebhookAck(success=True, message="Webhook processed successfully", sahha_profile_id=profile_id)

    store_bundle(player, bundle, datetime.now(timezone.utc))
    return WebhookAck(
        success=True,
        message="Webhook processed successfully",
        sahha_profile_id=profile_id,
        player_updated=True,
    )
