"""
Round filtering: narrows the region catalog by the dice outcomes so far.

Survivors are always recomputed from the full catalog and the full outcome
sequence, never patched from the previous round's survivors.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from region_catalog import Region
from wkt_parser import LatLon


@dataclass(frozen=True)
class RoundResult:
    """Survivors and map focus after applying a sequence of outcomes."""
    survivors: Tuple[Region, ...]
    focus: Optional[LatLon]


def matches_round(region: Region, round_number: int, outcome: int) -> bool:
    """
    Check whether a region survives one round.

    A missing round key fails the round; it is not a wildcard.

    Args:
        region: Region to test
        round_number: 1-based round number
        outcome: Die value rolled for that round

    Returns:
        True if the region's key for the round equals the outcome
    """
    key = region.round_key(round_number)
    if key is None:
        return False
    return key == outcome


def filter_regions(catalog: Iterable[Region], outcomes: Sequence[int]) -> List[Region]:
    """
    Apply every outcome, in order, to the full catalog.

    Args:
        catalog: All regions
        outcomes: Die values for rounds 1..n

    Returns:
        Regions matching every round, in catalog order
    """
    survivors = list(catalog)
    for round_number, outcome in enumerate(outcomes, 1):
        survivors = [r for r in survivors if matches_round(r, round_number, outcome)]
    return survivors


def resolve_round(
    catalog: Iterable[Region],
    outcomes: Sequence[int],
    previous_focus: Optional[LatLon] = None,
) -> RoundResult:
    """
    Compute survivors and the next map focus.

    The focus moves to the first survivor's center when there is one;
    otherwise it stays at previous_focus.

    Args:
        catalog: All regions
        outcomes: Die values for rounds 1..n
        previous_focus: Focus before this round

    Returns:
        RoundResult
    """
    survivors = filter_regions(catalog, outcomes)

    focus = previous_focus
    if survivors and survivors[0].center is not None:
        focus = survivors[0].center

    return RoundResult(survivors=tuple(survivors), focus=focus)
