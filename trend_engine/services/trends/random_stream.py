"""
Seeded outcome generator.

The only source of randomness in the engine: a linear congruential generator
seeded from a trend's identifier. State is an explicit SeedState value and
next_draw() is pure, so any stream can be replayed from its seed.

Stream layout per reconstructed game (DRAWS_PER_GAME consecutive draws):

    0  outcome
    1  date offset
    2  sport (drawn even for single-sport trends, the value is ignored)
    3  home team index
    4  away team index
    5  home score
    6  away score
    7  line
    8  total

generate() only reads draw 0 of each block and skips the rest, which keeps it
standalone while the synthesizer continues from the state it hands back.
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple

from trend_engine.models.results import Outcome
from trend_engine.models.trends import BetType, Record

LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280

DRAWS_PER_GAME = 9
SYNTHESIS_DRAWS = DRAWS_PER_GAME - 1

DEFAULT_PUSH_RATE = 0.02
DEFAULT_MAX_GAMES = 200


@dataclass(frozen=True)
class SeedState:
    """Position in an LCG stream."""
    seed: int


@dataclass(frozen=True)
class OutcomeDraw:
    """
    One generated outcome.

    Attributes:
        index: Position of the game in generation order
        value: The uniform draw that decided the outcome
        result: Win, loss or push
        state: Stream state right after the outcome draw; the synthesizer
               reads the remaining draws of the block from here
    """
    index: int
    value: float
    result: Outcome
    state: SeedState


def seed_from_id(trend_id: str) -> SeedState:
    """Fold an identifier into a seed (sum of character codes)."""
    return SeedState(sum(ord(ch) for ch in trend_id))


def next_draw(state: SeedState) -> Tuple[float, SeedState]:
    """
    Advance the stream by one step.

    Returns:
        (draw in [0, 1), new state)
    """
    seed = (state.seed * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
    return seed / LCG_MODULUS, SeedState(seed)


def take(state: SeedState, n: int) -> Tuple[List[float], SeedState]:
    """Read n consecutive draws."""
    draws = []
    for _ in range(n):
        value, state = next_draw(state)
        draws.append(value)
    return draws, state


def skip(state: SeedState, n: int) -> SeedState:
    """Discard n draws."""
    return take(state, n)[1]


def push_rate_for(bet_type: BetType, push_rate: float = DEFAULT_PUSH_RATE) -> float:
    """Push band for a bet type. Moneylines settle without ties."""
    if bet_type is BetType.MONEYLINE:
        return 0.0
    return push_rate


def outcome_for(value: float, win_rate: float, push_rate: float) -> Outcome:
    """Map a uniform draw onto win / push / loss bands."""
    if value < win_rate:
        return Outcome.WIN
    if value < win_rate + push_rate:
        return Outcome.PUSH
    return Outcome.LOSS


def reconstruct_count(requested: int, sample_size: int, cap: int = DEFAULT_MAX_GAMES) -> int:
    """Number of games to rebuild: min(requested, sample size, cap), never negative."""
    return max(0, min(requested, sample_size, cap))


def generate(
    trend_id: str,
    count: int,
    record: Record = Record(),
    push_rate: float = 0.0,
    sample_size: Optional[int] = None,
    cap: int = DEFAULT_MAX_GAMES,
) -> List[OutcomeDraw]:
    """
    Generate a reproducible sequence of outcomes for a trend.

    Args:
        trend_id: Trend identifier, seeds the stream
        count: Requested number of outcomes
        record: All-time record; its win rate sets the win band
        push_rate: Width of the push band above the win band
        sample_size: The trend's all-time sample size; None leaves only the cap
        cap: Hard ceiling on generated outcomes

    Returns:
        min(count, sample_size, cap) OutcomeDraws in generation order
    """
    if sample_size is not None:
        count = reconstruct_count(count, sample_size, cap)
    else:
        count = max(0, min(count, cap))
    win_rate = record.win_rate
    state = seed_from_id(trend_id)
    draws = []
    for index in range(count):
        value, state = next_draw(state)
        draws.append(OutcomeDraw(index, value, outcome_for(value, win_rate, push_rate), state))
        state = skip(state, SYNTHESIS_DRAWS)
    return draws
