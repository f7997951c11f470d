"""
Deck generation for dealing and penalty draws.

Every deal draws from an independently shuffled fresh deck; cards are not
tracked as one depleting pile across the whole game. Randomness comes from
random.SystemRandom unless a seeded random.Random is injected (tests).
"""

import random

from bluff.logic.enums import CardKind
from bluff.logic.settings import DECK_LIE_CARDS, DECK_TRUTH_CARDS, HAND_SIZE, PENALTY_SIZE
from bluff.logic.types import Card


def _resolve_rng(rng: random.Random | None) -> random.Random:
    return rng if rng is not None else random.SystemRandom()


def build_shuffled_deck(rng: random.Random | None = None) -> list[Card]:
    """Build a balanced deck (30 truth, 30 lie) in uniformly random order.

    random.shuffle is a Fisher-Yates shuffle, so every permutation is
    reachable with equal probability up to the quality of the RNG.
    """
    deck = [Card(kind=CardKind.TRUTH) for _ in range(DECK_TRUTH_CARDS)]
    deck.extend(Card(kind=CardKind.LIE) for _ in range(DECK_LIE_CARDS))
    _resolve_rng(rng).shuffle(deck)
    return deck


def build_penalty_cards(count: int = PENALTY_SIZE, rng: random.Random | None = None) -> list[Card]:
    """Generate `count` cards, each independently truth or lie with probability 0.5."""
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    r = _resolve_rng(rng)
    return [Card(kind=r.choice((CardKind.TRUTH, CardKind.LIE))) for _ in range(count)]


def deal_hand(rng: random.Random | None = None) -> tuple[Card, ...]:
    """Deal a starting hand from the top of a freshly shuffled deck."""
    return tuple(build_shuffled_deck(rng)[:HAND_SIZE])
