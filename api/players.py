"""Bridge between stored players and the roster refresh pipeline."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from core.models import Player, Trainer
from core.services.insights.models import InsightBundle
from core.services.wearables.sahha import bundle_to_dict, parse_insight_bundle
from core.services.wearables.sync import RefreshOutcome, RosterEntry

logger = logging.getLogger(__name__)


def get_player_or_404(db: Session, player_id: int) -> Player:
    player = db.get(Player, player_id)
    if player is None:
        raise HTTPException(status_code=404, detail={"code": "PLAYER_NOT_FOUND", "player_id": player_id})
    return player


def get_trainer_or_404(db: Session, trainer_id: int) -> Trainer:
    trainer = db.get(Trainer, trainer_id)
    if trainer is None:
        raise HTTPException(status_code=404, detail={"code": "TRAINER_NOT_FOUND", "trainer_id": trainer_id})
    return trainer


def player_to_entry(player: Player) -> RosterEntry:
    return RosterEntry(
        id=str(player.id),
        first_name=player.first_name,
        last_name=player.last_name,
        sahha_profile_id=player.sahha_profile_id,
        cached_bundle=parse_insight_bundle(player.insights_json),
        last_synced_at=player.insights_synced_at,
        suspended=bool(player.suspended),
    )


def store_bundle(player: Player, bundle: InsightBundle, synced_at) -> None:
    player.insights_json = bundle_to_dict(bundle)
    player.insights_synced_at = synced_at


def apply_outcomes(players: list[Player], outcomes: list[RefreshOutcome]) -> int:
    """Persist refreshed bundles; returns how many players were updated."""
    by_id = {str(p.id): p for p in players}
    updated = 0
    for outcome in outcomes:
        player: Optional[Player] = by_id.get(outcome.entry_id)
        if player is None or not outcome.refreshed:
            continue
        store_bundle(player, outcome.bundle, outcome.synced_at)
        updated += 1
    if updated:
        logger.info("insights_persisted", extra={"players_updated": updated})
    return updated
