"""Return-to-play recommendation derived from the mix of comparison states."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from core.services.insights.models import InsightBundle
from core.services.insights.states import AT_RISK_STATES, CAUTION_STATES, READY_STATES, parse_state


class ReturnToPlay(str, Enum):
    READY = "ready"
    CAUTION = "caution"
    NOT_READY = "notReady"


@dataclass(frozen=True)
class ReturnToPlayStatus:
    status: ReturnToPlay
    message: str
    details: str


INSUFFICIENT_DATA = ReturnToPlayStatus(
    status=ReturnToPlay.CAUTION,
    message="Insufficient data to determine return to play status",
    details="Continue monitoring and consult with your coach",
)
NOT_READY = ReturnToPlayStatus(
    status=ReturnToPlay.NOT_READY,
    message="Not ready for return to play",
    details="Multiple metrics indicate you need more recovery time",
)
CAUTION = ReturnToPlayStatus(
    status=ReturnToPlay.CAUTION,
    message="Estimated 3-5 days until return to play",
    details="Continue light activity, avoid contact sports",
)
READY = ReturnToPlayStatus(
    status=ReturnToPlay.READY,
    message="Ready for return to play",
    details="All metrics indicate you are ready",
)


def classify_return_to_play(bundle: InsightBundle) -> ReturnToPlayStatus:
    if not bundle.comparisons:
        return INSUFFICIENT_DATA

    ready = caution = at_risk = 0
    for comparison in bundle.comparisons:
        state = parse_state(comparison.state)
        if state in READY_STATES:
            ready += 1
        elif state in CAUTION_STATES:
            caution += 1
        elif state in AT_RISK_STATES:
            at_risk += 1

    if at_risk > 0:
        return NOT_READY
    if caution > ready:
        return CAUTION
    return READY
