# tests/test_position.py
import pytest

from errors import ConvertError, IllegalMove, InvalidSquare
from models import Initial, Kind, MoveRecord, Piece, Preset, Step
from position import ShogiPosition, replay


def test_startpos_layout():
    pos = ShogiPosition.startpos()
    assert pos.side_to_move == "B"
    assert pos.piece_at((5, 9)) == Piece("B", Kind.OU)
    assert pos.piece_at((8, 2)) == Piece("W", Kind.HI)
    assert pos.piece_at((2, 8)) == Piece("B", Kind.HI)
    assert pos.piece_at((5, 5)) is None
    assert pos.hand_of("B") == {}
    assert sum(1 for p in pos.board.values() if p is not None) == 40


def test_handicap_preset_moves_first_as_white():
    pos = ShogiPosition.from_preset(Preset.P2)
    assert pos.side_to_move == "W"
    assert pos.piece_at((8, 2)) is None
    assert pos.piece_at((2, 2)) is None


def test_other_preset_needs_data():
    with pytest.raises(ConvertError):
        ShogiPosition.from_preset(Preset.OTHER)


def test_make_move_capture_goes_to_hand_unpromoted():
    pos = ShogiPosition.empty()
    pos.set_piece((5, 5), Piece("B", Kind.HI))
    pos.set_piece((5, 3), Piece("W", Kind.TO))
    captured = pos.make_move(MoveRecord(color="B", from_sq=(5, 5), to_sq=(5, 3), piece=Kind.HI, promote=True))
    assert captured == Piece("W", Kind.TO)
    assert pos.piece_at((5, 3)) == Piece("B", Kind.RY)
    assert pos.hand_of("B") == {Kind.FU: 1}
    assert pos.side_to_move == "W"
    assert pos.last_move().to_sq == (5, 3)


def test_drop_needs_piece_in_hand():
    pos = ShogiPosition.empty()
    with pytest.raises(IllegalMove):
        pos.make_move(MoveRecord(color="B", to_sq=(5, 5), piece=Kind.KI))
    pos.set_hand("B", Kind.KI, 1)
    pos.make_move(MoveRecord(color="B", to_sq=(5, 5), piece=Kind.KI))
    assert pos.hand_of("B") == {}
    assert pos.piece_at((5, 5)) == Piece("B", Kind.KI)


def test_drop_on_occupied_square_is_illegal():
    pos = ShogiPosition.startpos()
    pos.set_hand("B", Kind.FU, 1)
    with pytest.raises(IllegalMove):
        pos.make_move(MoveRecord(color="B", to_sq=(5, 7), piece=Kind.FU))


def test_illegal_board_moves():
    pos = ShogiPosition.startpos()
    # 自分の駒の上
    with pytest.raises(IllegalMove):
        pos.make_move(MoveRecord(color="B", from_sq=(7, 9), to_sq=(7, 7), piece=Kind.GI))
    # 移動元が空
    with pytest.raises(IllegalMove):
        pos.make_move(MoveRecord(color="B", from_sq=(5, 5), to_sq=(5, 4), piece=Kind.FU))
    # 相手の駒
    with pytest.raises(IllegalMove):
        pos.make_move(MoveRecord(color="B", from_sq=(3, 3), to_sq=(3, 4), piece=Kind.FU))
    # 金は成れない
    with pytest.raises(IllegalMove):
        pos.make_move(MoveRecord(color="B", from_sq=(6, 9), to_sq=(6, 8), piece=Kind.KI, promote=True))


def test_king_cannot_be_captured():
    pos = ShogiPosition.empty()
    pos.set_piece((5, 5), Piece("B", Kind.HI))
    pos.set_piece((5, 1), Piece("W", Kind.OU))
    with pytest.raises(IllegalMove):
        pos.make_move(MoveRecord(color="B", from_sq=(5, 5), to_sq=(5, 1), piece=Kind.HI))


def test_invalid_square():
    pos = ShogiPosition.empty()
    with pytest.raises(InvalidSquare):
        pos.piece_at((0, 5))
    with pytest.raises(InvalidSquare):
        pos.set_piece((10, 1), None)


def test_clone_is_independent_but_shares_history():
    pos = ShogiPosition.startpos()
    pos.make_move(MoveRecord(color="B", from_sq=(7, 7), to_sq=(7, 6), piece=Kind.FU))
    other = pos.clone()
    other.make_move(MoveRecord(color="W", from_sq=(3, 3), to_sq=(3, 4), piece=Kind.FU))

    assert pos.piece_at((3, 3)) == Piece("W", Kind.FU)
    assert pos.side_to_move == "W"
    assert len(pos.history()) == 1
    assert [m.to_sq for m in other.history()] == [(7, 6), (3, 4)]


def test_replay_stops_at_special():
    steps = [
        Step(move=MoveRecord(color="B", from_sq=(7, 7), to_sq=(7, 6), piece=Kind.FU)),
        Step(),
        Step(move=MoveRecord(color="W", from_sq=(3, 3), to_sq=(3, 4), piece=Kind.FU)),
    ]
    pos = replay(Initial(preset=Preset.HIRATE), steps)
    assert pos.piece_at((3, 3)) == Piece("W", Kind.FU)
    assert pos.side_to_move == "W"
