"""
Time-window aggregation and system roll-up.

Both reductions are pure: the same inputs always give the same output, and
every rate guards its denominator and reports 0 instead of failing.
"""
from datetime import date
from typing import Iterable

from trend_engine.models.results import (
    Outcome,
    ReconstructedGame,
    RollupStats,
    TimeWindow,
    WindowStats,
)


def in_window(game: ReconstructedGame, window: TimeWindow, today: date) -> bool:
    cutoff = window.cutoff(today)
    return cutoff is None or game.date >= cutoff


def aggregate(games: Iterable[ReconstructedGame], window: TimeWindow, today: date) -> WindowStats:
    """
    Reduce the games inside a trailing window to record, rates and units.

    win_rate excludes pushes from its denominator; roi includes them since a
    push is a settled bet that returned nothing.

    Args:
        games: Reconstructed (or live) games
        window: Trailing window
        today: Reference date the window trails from

    Returns:
        WindowStats for the filtered games
    """
    wins = losses = pushes = 0
    total_units = 0.0
    for game in games:
        if not in_window(game, window, today):
            continue
        if game.result is Outcome.WIN:
            wins += 1
        elif game.result is Outcome.LOSS:
            losses += 1
        else:
            pushes += 1
        total_units += game.units_won

    decided = wins + losses
    settled = decided + pushes
    return WindowStats(
        wins=wins,
        losses=losses,
        pushes=pushes,
        win_rate=wins / decided if decided else 0.0,
        roi=total_units / settled * 100 if settled else 0.0,
        total_units=total_units,
    )


def rollup(stats: Iterable[WindowStats]) -> RollupStats:
    """
    Combine per-trend window stats into system-wide totals.

    Rates are pooled (summed numerators over summed denominators), so each
    trend weighs in proportion to its own settled picks.
    """
    wins = losses = pushes = trend_count = 0
    total_units = 0.0
    for entry in stats:
        wins += entry.wins
        losses += entry.losses
        pushes += entry.pushes
        total_units += entry.total_units
        trend_count += 1

    decided = wins + losses
    total_picks = decided + pushes
    return RollupStats(
        total_picks=total_picks,
        wins=wins,
        losses=losses,
        pushes=pushes,
        win_rate=wins / decided if decided else 0.0,
        roi=total_units / total_picks * 100 if total_picks else 0.0,
        total_units=total_units,
        trend_count=trend_count,
    )
