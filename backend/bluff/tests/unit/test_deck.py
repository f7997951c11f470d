import random
from collections import Counter

import pytest

from bluff.logic.deck import build_penalty_cards, build_shuffled_deck, deal_hand
from bluff.logic.enums import CardKind
from bluff.logic.settings import DECK_SIZE, HAND_SIZE, PENALTY_SIZE


class TestBuildShuffledDeck:
    def test_deck_is_balanced(self):
        deck = build_shuffled_deck(random.Random(1))

        assert len(deck) == DECK_SIZE == 60
        assert Counter(card.kind for card in deck) == {CardKind.TRUTH: 30, CardKind.LIE: 30}

    def test_card_ids_are_unique(self):
        deck = build_shuffled_deck()
        assert len({card.id for card in deck}) == DECK_SIZE

    def test_seeded_rng_is_deterministic(self):
        kinds_a = [c.kind for c in build_shuffled_deck(random.Random(7))]
        kinds_b = [c.kind for c in build_shuffled_deck(random.Random(7))]
        assert kinds_a == kinds_b

    def test_deck_is_shuffled(self):
        # an unshuffled deck would be 30 truths followed by 30 lies
        kinds = [c.kind for c in build_shuffled_deck(random.Random(3))]
        assert kinds != sorted(kinds, key=lambda k: k != CardKind.TRUTH)


class TestBuildPenaltyCards:
    def test_default_count(self):
        assert len(build_penalty_cards()) == PENALTY_SIZE == 3

    def test_custom_count(self):
        cards = build_penalty_cards(10, random.Random(0))
        assert len(cards) == 10
        assert all(c.kind in (CardKind.TRUTH, CardKind.LIE) for c in cards)

    def test_zero_count(self):
        assert build_penalty_cards(0) == []

    def test_negative_count_raises(self):
        with pytest.raises(ValueError, match="non-negative"):
            build_penalty_cards(-1)

    def test_both_kinds_appear(self):
        kinds = {c.kind for c in build_penalty_cards(200, random.Random(5))}
        assert kinds == {CardKind.TRUTH, CardKind.LIE}


class TestDealHand:
    def test_hand_size(self):
        hand = deal_hand(random.Random(2))
        assert isinstance(hand, tuple)
        assert len(hand) == HAND_SIZE == 7

    def test_hands_have_fresh_ids(self):
        first = deal_hand()
        second = deal_hand()
        assert not {c.id for c in first} & {c.id for c in second}
