"""
Tests for the MessagePack codec and message models.
"""

import msgpack
import pytest
from pydantic import ValidationError

from bluff.messaging.encoder import MAX_BUFFER_LEN, DecodeError, decode, encode
from bluff.messaging.types import (
    AccusationMessage,
    JoinGameMessage,
    PingMessage,
    PlayerJoinedData,
    PlayerJoinedMessage,
    error_message,
    parse_client_message,
)
from bluff.tests.helpers.state import create_session


class TestDecode:
    def test_decodes_map(self):
        assert decode(encode({"type": "ping"})) == {"type": "ping"}

    def test_rejects_non_map(self):
        with pytest.raises(DecodeError, match="expected dict"):
            decode(msgpack.packb([1, 2, 3]))

    def test_rejects_garbage(self):
        with pytest.raises(DecodeError):
            decode(b"\xc1")

    def test_rejects_oversized_payload(self):
        with pytest.raises(DecodeError, match="payload too large"):
            decode(b"\x00" * (MAX_BUFFER_LEN + 1))

    def test_rejects_oversized_string(self):
        with pytest.raises(DecodeError):
            decode(msgpack.packb({"type": "x" * 5000}))

    def test_text_frame_bytes_fail(self):
        with pytest.raises(DecodeError):
            decode(b'{"type": "ping"}')


class TestParseClientMessage:
    def test_join_game(self):
        message = parse_client_message({"type": "join_game", "game_id": "ABC123", "player_id": "p0"})

        assert isinstance(message, JoinGameMessage)
        assert message.game_id == "ABC123"

    def test_ping(self):
        assert isinstance(parse_client_message({"type": "ping"}), PingMessage)

    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            parse_client_message({"type": "nope"})

    def test_lowercase_game_id_is_rejected(self):
        with pytest.raises(ValidationError):
            parse_client_message({"type": "join_game", "game_id": "abc123", "player_id": "p0"})

    def test_missing_player_id(self):
        with pytest.raises(ValidationError):
            parse_client_message({"type": "join_game", "game_id": "ABC123"})


class TestServerMessages:
    def test_player_joined_envelope(self):
        session = create_session()
        message = PlayerJoinedMessage(data=PlayerJoinedData(game=session, new_player=session.players[1]))

        data = decode(encode(message.model_dump(mode="json")))

        assert data["type"] == "player_joined"
        assert data["data"]["game"]["id"] == session.id
        assert data["data"]["new_player"]["name"] == "Bob"

    def test_accusation_carries_revealed_card(self):
        data = AccusationMessage(data=create_session()).model_dump(mode="json")

        assert data["type"] == "accusation"
        assert "revealed_card" in data["data"]
        assert isinstance(data["data"]["created_at"], str)

    def test_error_message(self):
        data = error_message("invalid_message", "bad").model_dump(mode="json")
        assert data == {"type": "error", "data": {"code": "invalid_message", "message": "bad"}}
