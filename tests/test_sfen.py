# tests/test_sfen.py
import pytest

from conftest import read_data
from csa_parser import parse_csa_str
from errors import ConvertError
from models import GameRecord, Initial, Kind, MoveRecord, Piece, Preset, Step
from position import ShogiPosition
from sfen import move_to_usi, position_from_sfen, position_to_sfen, record_to_usi

STARTPOS = "lnsgkgsnl/1r5b1/ppppppppp/9/9/9/PPPPPPPPP/1B5R1/LNSGKGSNL b - 1"


def test_startpos_sfen():
    assert position_to_sfen(ShogiPosition.startpos()) == STARTPOS


def test_sfen_roundtrip_with_hands_and_promoted():
    text = "4k4/9/4+P4/9/9/9/9/9/4K4 w 2Gb18p 1"
    pos = position_from_sfen("sfen " + text)
    assert pos.side_to_move == "W"
    assert pos.piece_at((5, 3)) == Piece("B", Kind.TO)
    assert pos.hand_of("B") == {Kind.KI: 2}
    assert pos.hand_of("W") == {Kind.KA: 1, Kind.FU: 18}
    assert position_to_sfen(pos) == text


def test_startpos_keyword():
    assert position_to_sfen(position_from_sfen("startpos")) == STARTPOS


@pytest.mark.parametrize(
    "text",
    [
        "",
        "9/9/9 b - 1",
        "lnsgkgsnl/1r5b1/ppppppppp/9/9/9/PPPPPPPPP/1B5R1/LNSGKGSN b - 1",
        "lnsgkgsnl/1r5b1/ppppppppp/9/9/9/PPPPPPPPP/1B5R1/LNSGKGSNL x - 1",
        "lnsgkgsnl/1r5b1/ppppppppp/9/9/9/PPPPPPPPP/1B5R1/LNSGKGSNL b 2K 1",
        "4+k4/9/9/9/9/9/9/9/4K4 b - 1",
    ],
)
def test_bad_sfen(text):
    with pytest.raises(ConvertError):
        position_from_sfen(text)


def test_move_to_usi():
    assert move_to_usi(MoveRecord(color="B", to_sq=(7, 6), piece=Kind.FU, from_sq=(7, 7))) == "7g7f"
    assert move_to_usi(MoveRecord(color="B", to_sq=(2, 2), piece=Kind.KA, from_sq=(8, 8), promote=True)) == "8h2b+"
    assert move_to_usi(MoveRecord(color="W", to_sq=(5, 5), piece=Kind.FU)) == "P*5e"


def test_record_to_usi_from_csa():
    record = parse_csa_str(read_data("sample.csa"))
    assert record_to_usi(record) == "position startpos moves 7g7f 3c3d 8h2b+ 3a2b B*4e"


def test_record_to_usi_handicap():
    record = GameRecord(initial=Initial(preset=Preset.P2), moves=[Step()])
    assert record_to_usi(record) == "position sfen lnsgkgsnl/9/ppppppppp/9/9/9/PPPPPPPPP/1B5R1/LNSGKGSNL w - 1"
