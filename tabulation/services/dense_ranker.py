"""
Dense Ranker

Tie-aware ranking of aggregated scores, computed separately per gender.

Ranks are competition style: equal rounded scores share a rank and the next
distinct score takes its 1-based position, so [90, 90, 80] ranks [1, 1, 3].
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from tabulation.models.enums import Gender, enum_value


@dataclass
class RankingRow:
    """One participant line of a ranking report."""
    participant_id: int
    participant_number: int
    name: str
    department: Optional[str]
    gender: str
    averaged_score: Decimal
    raw_averaged_score: Decimal
    rank: int = 0
    judge_scores: Optional[Dict[str, Optional[Decimal]]] = None
    category_scores: Optional[Dict[str, Optional[Decimal]]] = None
    segment_scores: Optional[Dict[str, Decimal]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "participant_id": self.participant_id,
            "participant_number": self.participant_number,
            "name": self.name,
            "department": self.department,
            "gender": self.gender,
            "averaged_score": float(self.averaged_score),
            "raw_averaged_score": float(self.raw_averaged_score),
            "rank": self.rank,
        }
        for key in ("judge_scores", "category_scores", "segment_scores"):
            cells = getattr(self, key)
            if cells is not None:
                data[key] = {
                    label: (float(value) if value is not None else None)
                    for label, value in cells.items()
                }
        return data


def ranking_sort_key(row: RankingRow):
    # Rounded score descending; equal scores fall back to participant number.
    return (-row.averaged_score, row.participant_number)


def assign_dense_ranks(rows: Iterable[RankingRow]) -> List[RankingRow]:
    """
    Sort rows by rounded score and assign shared ranks to ties.

    Args:
        rows: Rows of a single partition, in any order

    Returns:
        New list of the same rows, sorted, with ``rank`` set
    """
    ordered = sorted(rows, key=ranking_sort_key)
    for index, row in enumerate(ordered):
        if index == 0:
            row.rank = 1
        elif row.averaged_score < ordered[index - 1].averaged_score:
            row.rank = index + 1
        else:
            row.rank = ordered[index - 1].rank
    return ordered


def rank_by_gender(rows: Iterable[RankingRow]) -> Dict[str, List[RankingRow]]:
    """Partition rows into the male and female leaderboards and rank each."""
    partitions: Dict[str, List[RankingRow]] = {
        Gender.MALE.value: [],
        Gender.FEMALE.value: [],
    }
    for row in rows:
        partitions.setdefault(enum_value(row.gender), []).append(row)
    return {gender: assign_dense_ranks(group) for gender, group in partitions.items()}
