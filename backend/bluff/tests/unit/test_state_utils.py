import pytest

from bluff.logic.enums import CardKind, GameEventKind, GamePhase
from bluff.logic.state_utils import (
    add_cards_to_player,
    append_event,
    finish,
    next_player_id,
    remove_card_from_player,
    update_player,
)
from bluff.logic.types import GameEvent
from bluff.tests.helpers.state import create_cards, create_player, create_session


class TestUpdatePlayer:
    def test_returns_new_session(self):
        session = create_session()

        updated = update_player(session, "p1", is_online=False)

        assert updated.get_player("p1").is_online is False
        assert session.get_player("p1").is_online is True

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValueError, match="Invalid player fields"):
            update_player(create_session(), "p0", score=10)

    def test_rejects_unknown_player(self):
        with pytest.raises(ValueError, match="not in game"):
            update_player(create_session(), "ghost", is_online=False)


class TestHandUpdates:
    def test_add_cards_appends_to_hand(self):
        extra = create_cards(CardKind.LIE, CardKind.LIE, prefix="x")

        updated = add_cards_to_player(create_session(), "p0", extra)

        hand = updated.get_player("p0").hand
        assert len(hand) == 9
        assert hand[-2:] == extra

    def test_remove_card(self):
        updated = remove_card_from_player(create_session(), "p0", "p0-3")

        assert updated.get_player("p0").find_card("p0-3") is None
        assert updated.get_player("p0").hand_size == 6


class TestNextPlayerId:
    def test_wraps_around(self):
        players = [create_player("p0"), create_player("p1"), create_player("p2")]
        session = create_session(players=players)

        assert next_player_id(session, "p0") == "p1"
        assert next_player_id(session, "p2") == "p0"


class TestFinish:
    def test_sets_phase_and_timestamp(self):
        updated = finish(create_session())

        assert updated.phase == GamePhase.FINISHED
        assert updated.finished_at is not None

    def test_is_idempotent(self):
        finished = finish(create_session())
        assert finish(finished) is finished


def test_append_event():
    event = GameEvent(kind=GameEventKind.JOIN, message="hello")
    updated = append_event(create_session(), event)
    assert updated.events == (event,)


class TestGameSessionModel:
    def test_is_frozen(self):
        session = create_session()
        with pytest.raises(ValueError, match="frozen"):
            session.phase = GamePhase.FINISHED

    def test_serialized_player_has_derived_fields(self):
        data = create_session().model_dump(mode="json")

        alice = data["players"][0]
        assert alice["avatar"] == "A"
        assert alice["hand_size"] == 7
        assert data["phase"] == "playing"
        assert data["revealed_card"] is None
