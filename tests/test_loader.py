import json
import logging

import pytest
from pydantic import ValidationError

from hexsave.engine.errors import (
    GameNameInUseError,
    InconsistentSnapshotError,
    MalformedSnapshotError,
    SeatCountMismatchError,
    SnapshotFormatError,
    UnknownOptionError,
    UnsupportedVersionError,
)
from hexsave.engine.game import Game
from hexsave.engine.host import HostContext
from hexsave.engine.loader import GameLoader, load_game, read_header
from hexsave.engine.registry import FeatureRegistry, HOST_VERSION
from hexsave.engine.saver import save_game
from hexsave.engine.types import DevCardType, GamePhase, PieceType


def _saved_document(tmp_path) -> dict:
    game = Game("basic")
    game.add_player("p0", 0)
    game.add_player("third", 3)
    game.start_game()
    game.set_phase(GamePhase.ROLL_OR_CARD)
    path = save_game(game, tmp_path, "basic.game.json", HostContext())
    return json.loads(path.read_text(encoding="utf-8"))


def _write(tmp_path, data, name="edited.game.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_version_fields_lead_the_document(tmp_path):
    data = _saved_document(tmp_path)
    assert list(data)[:2] == ["model_version", "saved_by_version"]


def test_read_header_ignores_body(tmp_path):
    data = _saved_document(tmp_path)
    data["seats"] = "not a list"
    header = read_header(_write(tmp_path, data))
    assert header.model_version == 1
    assert header.saved_by_version == HOST_VERSION


def test_unknown_model_version_rejected(tmp_path):
    data = _saved_document(tmp_path)
    data["model_version"] = 99
    data["some_future_field"] = {"x": 1}
    with pytest.raises(UnsupportedVersionError) as excinfo:
        load_game(_write(tmp_path, data))
    assert excinfo.value.code == "savegame.load.unsupported_version"
    assert excinfo.value.params == {"model_version": 99, "supported": [1]}


def test_registry_can_withdraw_version(tmp_path):
    data = _saved_document(tmp_path)
    registry = FeatureRegistry(model_versions={1: False})
    with pytest.raises(UnsupportedVersionError):
        GameLoader(registry).load(_write(tmp_path, data))


def test_not_json_is_malformed(tmp_path):
    path = tmp_path / "broken.game.json"
    path.write_text('{"model_version": 1, "saved_by', encoding="utf-8")
    with pytest.raises(MalformedSnapshotError):
        load_game(path)


def test_invalid_utf8_is_malformed(tmp_path):
    path = tmp_path / "latin.game.json"
    path.write_bytes(b'{"model_version": 1, "saved_by_version": 1000, "game_name": "\xff\xfe"}')
    with pytest.raises(MalformedSnapshotError) as excinfo:
        load_game(path)
    assert "utf-8" in excinfo.value.params["detail"]


def test_oversized_integer_is_malformed(tmp_path):
    path = tmp_path / "huge.game.json"
    path.write_text('{"model_version": ' + "9" * 5000 + "}", encoding="utf-8")
    with pytest.raises(MalformedSnapshotError):
        load_game(path)


def test_deep_nesting_is_malformed(tmp_path):
    path = tmp_path / "deep.game.json"
    path.write_text('{"board_state": ' + "[" * 100000 + "]" * 100000 + "}", encoding="utf-8")
    with pytest.raises(MalformedSnapshotError):
        load_game(path)


def test_non_object_document_is_malformed(tmp_path):
    with pytest.raises(MalformedSnapshotError):
        load_game(_write(tmp_path, [1, 2, 3]))


def test_missing_header_is_malformed(tmp_path):
    data = _saved_document(tmp_path)
    del data["model_version"]
    with pytest.raises(MalformedSnapshotError):
        load_game(_write(tmp_path, data))


def test_unknown_field_is_malformed(tmp_path):
    data = _saved_document(tmp_path)
    data["seats"][0]["extra"] = 1
    with pytest.raises(MalformedSnapshotError) as excinfo:
        load_game(_write(tmp_path, data))
    assert "seats.0.extra" in excinfo.value.params["detail"]


def test_negative_resource_is_malformed(tmp_path):
    data = _saved_document(tmp_path)
    data["seats"][0]["resources"]["ore"] = -1
    with pytest.raises(MalformedSnapshotError):
        load_game(_write(tmp_path, data))


def test_seat_count_mismatch(tmp_path):
    data = _saved_document(tmp_path)
    data["seats"] = data["seats"][:3]
    with pytest.raises(SeatCountMismatchError) as excinfo:
        load_game(_write(tmp_path, data))
    assert excinfo.value.params == {"max_seats": 4, "seat_count": 3}
    assert isinstance(excinfo.value, SnapshotFormatError)


def test_vacant_seat_with_resources_rejected(tmp_path):
    data = _saved_document(tmp_path)
    data["seats"][1]["resources"]["wood"] = 2
    with pytest.raises(InconsistentSnapshotError) as excinfo:
        load_game(_write(tmp_path, data))
    assert excinfo.value.params == {"reason": "vacant_resources", "seat": 1}


def test_vacant_seat_with_missing_pieces_rejected(tmp_path):
    data = _saved_document(tmp_path)
    data["seats"][2]["piece_counts"]["ROAD"] = 14
    with pytest.raises(InconsistentSnapshotError) as excinfo:
        load_game(_write(tmp_path, data))
    assert excinfo.value.params["reason"] == "vacant_pieces"


def test_stored_victory_points_checked(tmp_path):
    data = _saved_document(tmp_path)
    data["seats"][0]["total_victory_points"] = 4
    with pytest.raises(InconsistentSnapshotError) as excinfo:
        load_game(_write(tmp_path, data))
    assert excinfo.value.params == {"reason": "victory_points", "seat": 0, "stored": 4, "expected": 0}


def test_current_player_must_be_seated(tmp_path):
    data = _saved_document(tmp_path)
    data["current_player"] = 1
    with pytest.raises(InconsistentSnapshotError) as excinfo:
        load_game(_write(tmp_path, data))
    assert excinfo.value.params == {"reason": "current_player", "seat": 1}


def test_materialize_rejects_running_name(tmp_path):
    data = _saved_document(tmp_path)
    snapshot = load_game(_write(tmp_path, data))
    host = HostContext(games={"basic": Game("basic")})
    with pytest.raises(GameNameInUseError) as excinfo:
        snapshot.materialize(host)
    assert excinfo.value.params == {"game_name": "basic"}


def test_materialize_rejects_unknown_option(tmp_path):
    data = _saved_document(tmp_path)
    data["game_options"] = {"ZZ": True}
    snapshot = load_game(_write(tmp_path, data))
    with pytest.raises(UnknownOptionError) as excinfo:
        snapshot.materialize(HostContext())
    assert excinfo.value.params == {"option_key": "ZZ"}


def test_materialize_rejects_bad_option_value(tmp_path):
    data = _saved_document(tmp_path)
    data["game_options"] = {"VP": 3}
    snapshot = load_game(_write(tmp_path, data))
    with pytest.raises(InconsistentSnapshotError) as excinfo:
        snapshot.materialize(HostContext())
    assert excinfo.value.params["option_key"] == "VP"


def test_newer_host_logs_warning(tmp_path, caplog):
    data = _saved_document(tmp_path)
    data["saved_by_version"] = HOST_VERSION + 100
    path = _write(tmp_path, data)
    with caplog.at_level(logging.WARNING, logger="hexsave.engine.loader"):
        snapshot = load_game(path)
    assert snapshot.saved_by_version == HOST_VERSION + 100
    assert "newer host version" in caplog.text


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_game(tmp_path / "nope.game.json")


def test_snapshot_is_frozen(tmp_path):
    data = _saved_document(tmp_path)
    data["board_state"] = {"hexes": [1, 2], "ports": {"3:1": 4}}
    data["game_options"] = {"VP": 12}
    snapshot = load_game(_write(tmp_path, data))
    with pytest.raises(ValidationError):
        snapshot.game_name = "other"
    with pytest.raises(AttributeError):
        snapshot.seats.pop()
    with pytest.raises(TypeError):
        snapshot.board_state["hexes"] = []
    with pytest.raises(TypeError):
        snapshot.board_state["ports"]["2:1"] = 1
    with pytest.raises(AttributeError):
        snapshot.board_state["hexes"].append(3)
    with pytest.raises(TypeError):
        snapshot.game_options["VP"] = 10
    seat = snapshot.seats[0]
    with pytest.raises(TypeError):
        seat.piece_counts[PieceType.ROAD] = 0
    with pytest.raises(AttributeError):
        seat.dev_cards.append(DevCardType.VP)


def test_frozen_snapshot_serializes_and_materializes(tmp_path):
    data = _saved_document(tmp_path)
    data["board_state"] = {"hexes": [1, 2], "ports": {"3:1": 4}}
    snapshot = load_game(_write(tmp_path, data))
    assert json.loads(snapshot.to_json()) == data
    game = snapshot.materialize(HostContext())
    game.board_layout["hexes"].append(3)
    assert game.board_layout == {"hexes": [1, 2, 3], "ports": {"3:1": 4}}
    assert snapshot.board_state["hexes"] == (1, 2)


@pytest.mark.parametrize("field_name", ["current_player", "first_player"])
def test_started_game_needs_turn_holder(tmp_path, field_name):
    data = _saved_document(tmp_path)
    data[field_name] = -1
    with pytest.raises(InconsistentSnapshotError) as excinfo:
        load_game(_write(tmp_path, data))
    assert excinfo.value.params == {"reason": field_name, "seat": -1}


def test_award_holders_may_be_unset(tmp_path):
    data = _saved_document(tmp_path)
    assert data["longest_road_player"] == data["largest_army_player"] == -1
    assert load_game(_write(tmp_path, data)).largest_army_player == -1
