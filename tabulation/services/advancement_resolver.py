"""
Advancement Resolver

Splits the participants of a segment into those who advance and those who
are eliminated, per gender, under the segment's advancement policy.

Policies:
- all / manual: everyone advances
- top_n: inclusive cutoff at the N-th best score; a tie at the cutoff that
  pushes the advance set above N is flagged for administrator confirmation
- threshold: total_score >= threshold advances; a group in which nobody
  advances is refused outright
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from tabulation.exceptions import ConfigurationError, ManualInterventionRequired
from tabulation.models.enums import AdvancementType, Gender, enum_value
from tabulation.models.snapshots import ParticipantSnapshot
from tabulation.services.score_aggregator import comparable_score, to_decimal

logger = logging.getLogger(__name__)


@dataclass
class ParticipantStanding:
    participant: ParticipantSnapshot
    total_score: Decimal

    @property
    def participant_id(self) -> int:
        return self.participant.id

    @property
    def comparable_total(self) -> Decimal:
        return comparable_score(self.total_score)

    def to_dict(self) -> dict:
        return {
            "participant_id": self.participant.id,
            "participant_number": self.participant.number,
            "name": self.participant.name,
            "gender": self.participant.gender,
            "total_score": float(self.total_score),
        }


@dataclass
class AdvancementResult:
    to_advance: List[ParticipantStanding] = field(default_factory=list)
    to_eliminate: List[ParticipantStanding] = field(default_factory=list)
    tie_detected: bool = False
    tied_genders: List[str] = field(default_factory=list)
    cutoffs: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "to_advance": [s.to_dict() for s in self.to_advance],
            "to_eliminate": [s.to_dict() for s in self.to_eliminate],
            "tie_detected": self.tie_detected,
            "tied_genders": list(self.tied_genders),
            "cutoffs": dict(self.cutoffs),
        }


def sort_standings(standings: Iterable[ParticipantStanding]) -> List[ParticipantStanding]:
    """Total descending, participant number ascending on ties."""
    return sorted(standings, key=lambda s: (-s.comparable_total, s.participant.number))


def group_by_gender(standings: Iterable[ParticipantStanding]) -> "OrderedDict[str, List[ParticipantStanding]]":
    groups: "OrderedDict[str, List[ParticipantStanding]]" = OrderedDict(
        [(Gender.MALE.value, []), (Gender.FEMALE.value, [])]
    )
    for standing in standings:
        groups.setdefault(enum_value(standing.participant.gender), []).append(standing)
    return OrderedDict((gender, sort_standings(group)) for gender, group in groups.items())


def _require_value(advancement_type: str, advancement_value) -> None:
    if advancement_value is None:
        raise ConfigurationError(
            f"advancement_value must be set for '{advancement_type}' advancement.",
            details={"advancement_type": advancement_type}
        )


def _top_n_limit(advancement_value) -> int:
    _require_value(AdvancementType.TOP_N.value, advancement_value)
    try:
        limit = Decimal(str(advancement_value))
    except InvalidOperation:
        raise ConfigurationError(
            f"advancement_value for 'top_n' must be a number, got {advancement_value!r}."
        )
    if limit != limit.to_integral_value() or limit < 1:
        raise ConfigurationError(
            f"advancement_value for 'top_n' must be a positive whole number, got {advancement_value}."
        )
    return int(limit)


def _resolve_top_n(group: List[ParticipantStanding], limit: int, gender: str, result: AdvancementResult) -> None:
    if len(group) <= limit:
        result.to_advance.extend(group)
        return

    cutoff = group[limit - 1].comparable_total
    result.cutoffs[gender] = float(cutoff)
    advanced = 0
    at_cutoff = 0
    for standing in group:
        if standing.comparable_total >= cutoff:
            result.to_advance.append(standing)
            advanced += 1
            if standing.comparable_total == cutoff:
                at_cutoff += 1
        else:
            result.to_eliminate.append(standing)

    if at_cutoff > 1 and advanced > limit:
        result.tie_detected = True
        result.tied_genders.append(gender)
        logger.warning(
            f"[ADVANCEMENT TIE] gender={gender} cutoff={cutoff} "
            f"at_cutoff={at_cutoff} advancing={advanced} limit={limit}"
        )


def _resolve_threshold(group: List[ParticipantStanding], threshold: Decimal, gender: str, result: AdvancementResult) -> None:
    result.cutoffs[gender] = float(threshold)
    advancing = [s for s in group if s.comparable_total >= threshold]
    if group and not advancing:
        logger.warning(
            f"[ADVANCEMENT BLOCKED] gender={gender} threshold={threshold}: nobody advances"
        )
        raise ManualInterventionRequired(
            "Zero participants advanced. Admin confirmation required.",
            details={"gender": gender, "threshold": float(threshold), "group_size": len(group)}
        )
    result.to_advance.extend(advancing)
    result.to_eliminate.extend(s for s in group if s.comparable_total < threshold)


def resolve_advancement(
    standings: Iterable[ParticipantStanding],
    advancement_type: str,
    advancement_value: Optional[float] = None,
) -> AdvancementResult:
    """
    Decide who advances out of a segment.

    Args:
        standings: Segment totals of the competing participants
        advancement_type: One of all, top_n, threshold, manual
        advancement_value: N for top_n, the minimum score for threshold

    Returns:
        AdvancementResult with advance/eliminate lists and the tie flag

    Raises:
        ConfigurationError: Unknown type, or missing/invalid advancement_value
        ManualInterventionRequired: A threshold group would lose everyone
    """
    groups = group_by_gender(standings)
    result = AdvancementResult()

    if advancement_type in (AdvancementType.ALL, AdvancementType.MANUAL):
        for group in groups.values():
            result.to_advance.extend(group)
        return result

    if advancement_type == AdvancementType.TOP_N:
        limit = _top_n_limit(advancement_value)
        for gender, group in groups.items():
            _resolve_top_n(group, limit, gender, result)
        return result

    if advancement_type == AdvancementType.THRESHOLD:
        _require_value(AdvancementType.THRESHOLD.value, advancement_value)
        threshold = to_decimal(advancement_value)
        for gender, group in groups.items():
            _resolve_threshold(group, threshold, gender, result)
        return result

    raise ConfigurationError(
        f"Unknown advancement type: {advancement_type}",
        details={"advancement_type": enum_value(advancement_type)}
    )
