"""Preference based assignment of nations to players."""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import Protocol

from scipy.optimize import linear_sum_assignment


class AllocationError(ValueError):
    """Raised when nations cannot be assigned to the given players."""


class Preferer(Protocol):
    """Anything that can state an ordered list of preferred nations."""

    def preferences(self) -> list[str]: ...


def _cost_row(
    preferences: Sequence[str],
    nations: Sequence[str],
    valid: set[str],
    rng: random.Random,
) -> list[int]:
    """Rank every nation for one player: stated preferences first, the rest shuffled."""
    cost_map: dict[str, int] = {}
    for nation in preferences:
        if nation in valid:
            cost_map[nation] = len(cost_map)
    row = [0] * len(nations)
    for nation_idx in rng.sample(range(len(nations)), len(nations)):
        nation = nations[nation_idx]
        if nation not in cost_map:
            cost_map[nation] = len(cost_map)
        row[nation_idx] = cost_map[nation]
    return row


def allocate_nations(
    preferers: Sequence[Preferer],
    nations: Sequence[str],
    rng: random.Random | None = None,
) -> list[str]:
    """Assign one nation to each preferer, minimising total preference cost.

    Returns the allocated nation for each preferer, in the preferers' order.
    Nations nobody stated a preference for are ranked in random order.
    """
    generator = rng if rng is not None else random.Random()
    preferers = list(preferers)
    nations = list(nations)
    if len(preferers) != len(nations):
        raise AllocationError(
            f"cannot allocate {len(nations)} nations to {len(preferers)} players"
        )
    if not nations:
        return []
    valid = set(nations)
    costs = [
        _cost_row(preferer.preferences(), nations, valid, generator)
        for preferer in preferers
    ]
    rows, cols = linear_sum_assignment(costs)
    solution = dict(zip((int(r) for r in rows), (int(c) for c in cols)))
    return [nations[solution[member_idx]] for member_idx in range(len(preferers))]