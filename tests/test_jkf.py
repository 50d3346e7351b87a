# tests/test_jkf.py
import json

import pytest

from conftest import read_data
from constants import preset_board
from csa_parser import parse_csa_str
from errors import ConvertError
from models import GameRecord, Initial, Kind, Piece, Preset, StateData, Step
import jkf


def _minimal(**extra):
    obj = {"header": {}, "moves": [{}]}
    obj.update(extra)
    return obj


def test_document_shape():
    record = parse_csa_str(read_data("sample.csa"))
    obj = jkf.record_to_jkf(record)
    assert obj["initial"] == {"preset": "HIRATE"}
    assert obj["moves"][0] == {}
    first = obj["moves"][1]
    assert first["move"] == {"color": 0, "from": {"x": 7, "y": 7}, "to": {"x": 7, "y": 6}, "piece": "FU"}
    assert first["time"] == {"now": {"m": 0, "s": 16}, "total": {"h": 0, "m": 0, "s": 16}}
    assert obj["moves"][3]["move"]["promote"] is True
    assert obj["moves"][3]["move"]["capture"] == "KA"
    assert obj["moves"][6] == {"special": "TORYO"}


def test_board_is_indexed_by_file_then_rank():
    data = StateData(color="W", board=preset_board(Preset.HIRATE))
    data.hands["B"][Kind.FU] = 2
    record = GameRecord(initial=Initial(preset=Preset.OTHER, data=data), moves=[Step()])
    obj = jkf.record_to_jkf(record)
    board = obj["initial"]["data"]["board"]
    assert board[1][1] == {"color": 1, "kind": "KA"}
    assert board[4][8] == {"color": 0, "kind": "OU"}
    assert board[4][4] == {}
    assert obj["initial"]["data"]["color"] == 1
    assert obj["initial"]["data"]["hands"][0]["FU"] == 2
    assert obj["initial"]["data"]["hands"][1]["FU"] == 0

    back = jkf.record_from_jkf(json.loads(json.dumps(obj)))
    assert back.initial.data.board[(2, 2)] == Piece("W", Kind.KA)
    assert back.initial.data.hands == {"B": {Kind.FU: 2}, "W": {}}


def test_loads_accepts_bom():
    text = "\ufeff" + json.dumps(_minimal(initial={"preset": "KA"}))
    record = jkf.loads(text)
    assert record.initial == Initial(preset=Preset.KA)


@pytest.mark.parametrize(
    "obj",
    [
        [],
        {"header": {}, "moves": []},
        {"header": {}, "moves": {}},
        _minimal(initial={"preset": "OTHER"}),
        _minimal(initial={"preset": "NINE"}),
        _minimal(initial={"preset": "OTHER", "data": {"color": 0, "board": [[{}] * 9] * 8, "hands": [{}, {}]}}),
        _minimal(initial={"preset": "OTHER", "data": {"color": 2, "board": [[{}] * 9] * 9, "hands": [{}, {}]}}),
        _minimal(initial={"preset": "OTHER", "data": {"color": 0, "board": [[{}] * 9] * 9, "hands": [{"OU": 1}, {}]}}),
        {"header": {}, "moves": [{}, {"move": {"color": 0, "piece": "FU"}}]},
        {"header": {}, "moves": [{}, {"move": {"color": 0, "to": {"x": 10, "y": 1}, "piece": "FU"}}]},
        {"header": {}, "moves": [{}, {"move": {"color": 0, "to": {"x": 7, "y": 6}, "piece": "XX"}}]},
        {"header": {}, "moves": [{}, {"move": {"color": True, "to": {"x": 7, "y": 6}, "piece": "FU"}}]},
        {"header": {}, "moves": [{}, {"special": "RESIGN"}]},
        {"header": {}, "moves": [{}, {"comments": "x"}]},
        {"header": {}, "moves": [{}, {"move": "7g7f"}]},
        {"header": {}, "moves": [{}, {"forks": [{}]}]},
    ],
)
def test_invalid_documents(obj):
    with pytest.raises(ConvertError):
        jkf.record_from_jkf(obj)


def test_same_move_without_to_is_accepted():
    obj = {"header": {}, "moves": [{}, {"move": {"color": 0, "same": True, "piece": "FU"}}]}
    record = jkf.record_from_jkf(obj)
    assert record.moves[1].move.to_sq is None
    assert record.moves[1].move.same is True


def test_broken_json():
    with pytest.raises(ConvertError):
        jkf.loads("{")


def test_error_message_names_the_field():
    obj = {"header": {}, "moves": [{}, {"move": {"color": 0, "to": {"x": 7, "y": 0}, "piece": "FU"}}]}
    with pytest.raises(ConvertError) as e:
        jkf.record_from_jkf(obj)
    assert "moves.1.move.to.y" in str(e.value)


def test_half_filled_board_cell_is_rejected():
    board = [[{} for _ in range(9)] for _ in range(9)]
    board[4][8] = {"color": 0}
    obj = _minimal(initial={"preset": "OTHER", "data": {"color": 0, "board": board, "hands": [{}, {}]}})
    with pytest.raises(ConvertError):
        jkf.record_from_jkf(obj)


def test_dumps_omits_missing_fields():
    record = parse_csa_str(read_data("sample.csa"))
    text = jkf.dumps(record, indent=None)
    obj = json.loads(text)
    assert obj["moves"][0] == {}
    # 打つ手には from が無い
    assert "from" not in obj["moves"][5]["move"]
    assert "relative" not in obj["moves"][5]["move"]
    assert "null" not in text
