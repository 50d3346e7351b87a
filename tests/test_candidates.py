# tests/test_candidates.py
import pytest

from candidates import assign_relative, candidate_origins, filter_by_relative
from errors import AmbiguousOrigin
from models import Kind, Piece, Relative
from position import ShogiPosition


def _pos(*pieces):
    pos = ShogiPosition.empty()
    for sq, color, kind in pieces:
        pos.set_piece(sq, Piece(color, kind))
    return pos


def test_two_silvers_reach_48():
    pos = _pos(((3, 9), "B", Kind.GI), ((5, 9), "B", Kind.GI))
    froms = candidate_origins(pos, (4, 8), Piece("B", Kind.GI))
    assert froms == [(3, 9), (5, 9)]

    rel_a = assign_relative("B", (4, 8), (3, 9), froms, Kind.GI)
    rel_b = assign_relative("B", (4, 8), (5, 9), froms, Kind.GI)
    assert rel_a != rel_b
    assert filter_by_relative("B", (4, 8), froms, rel_a) == [(3, 9)]
    assert filter_by_relative("B", (4, 8), froms, rel_b) == [(5, 9)]
    # 先手から見て 5九 は左、3九 は右
    assert rel_b == Relative.L
    assert rel_a == Relative.R


def test_white_orientation_is_mirrored():
    pos = _pos(((3, 1), "W", Kind.GI), ((5, 1), "W", Kind.GI))
    froms = candidate_origins(pos, (4, 2), Piece("W", Kind.GI))
    assert froms == [(3, 1), (5, 1)]
    # 後手から見ると 3一 が左
    assert assign_relative("W", (4, 2), (3, 1), froms, Kind.GI) == Relative.L
    assert assign_relative("W", (4, 2), (5, 1), froms, Kind.GI) == Relative.R


def test_opponent_and_other_kinds_are_ignored():
    pos = _pos(((3, 9), "B", Kind.GI), ((5, 9), "W", Kind.GI), ((5, 7), "B", Kind.KI))
    assert candidate_origins(pos, (4, 8), Piece("B", Kind.GI)) == [(3, 9)]


def test_knight_jumps():
    pos = _pos(((8, 9), "B", Kind.KE), ((6, 9), "B", Kind.KE), ((7, 8), "W", Kind.FU))
    assert candidate_origins(pos, (7, 7), Piece("B", Kind.KE)) == [(6, 9), (8, 9)]


def test_rays_stop_at_first_piece():
    pos = _pos(((5, 9), "B", Kind.HI), ((5, 7), "B", Kind.FU), ((1, 5), "B", Kind.HI))
    assert candidate_origins(pos, (5, 5), Piece("B", Kind.HI)) == [(1, 5)]

    pos = _pos(((9, 9), "B", Kind.KY))
    assert candidate_origins(pos, (9, 1), Piece("B", Kind.KY)) == [(9, 9)]
    # 香は後ろへ下がれない
    assert candidate_origins(pos, (9, 9), Piece("B", Kind.KY)) == []


def test_promoted_rook_adds_diagonal_steps():
    pos = _pos(((4, 4), "B", Kind.RY), ((6, 6), "B", Kind.RY))
    froms = candidate_origins(pos, (5, 5), Piece("B", Kind.RY))
    assert froms == [(4, 4), (6, 6)]
    # 竜・馬は左右を先に使う
    assert assign_relative("B", (5, 5), (6, 6), froms, Kind.RY) == Relative.L
    assert assign_relative("B", (5, 5), (4, 4), froms, Kind.RY) == Relative.R


def test_horse_reaches_by_ray_and_step():
    pos = _pos(((1, 1), "B", Kind.UM), ((5, 6), "B", Kind.UM))
    assert candidate_origins(pos, (5, 5), Piece("B", Kind.UM)) == [(1, 1), (5, 6)]


def test_straight_up_token():
    # 金が三枚: 直・右・左
    pos = _pos(((5, 6), "B", Kind.KI), ((4, 6), "B", Kind.KI), ((6, 6), "B", Kind.KI))
    froms = candidate_origins(pos, (5, 5), Piece("B", Kind.KI))
    assert froms == [(4, 6), (5, 6), (6, 6)]
    assert filter_by_relative("B", (5, 5), froms, Relative.C) == [(5, 6)]
    assert assign_relative("B", (5, 5), (5, 6), froms, Kind.KI) == Relative.C
    assert assign_relative("B", (5, 5), (6, 6), froms, Kind.KI) == Relative.L
    assert assign_relative("B", (5, 5), (4, 6), froms, Kind.KI) == Relative.R


def test_motion_tokens():
    # 5五 へ 4四（引）と 6六（上）の銀
    pos = _pos(((4, 4), "B", Kind.GI), ((6, 6), "B", Kind.GI))
    froms = candidate_origins(pos, (5, 5), Piece("B", Kind.GI))
    assert froms == [(4, 4), (6, 6)]
    assert assign_relative("B", (5, 5), (6, 6), froms, Kind.GI) == Relative.U
    assert assign_relative("B", (5, 5), (4, 4), froms, Kind.GI) == Relative.D


def test_level_token():
    pos = _pos(((4, 5), "B", Kind.KI), ((5, 6), "B", Kind.KI))
    froms = candidate_origins(pos, (5, 5), Piece("B", Kind.KI))
    assert assign_relative("B", (5, 5), (4, 5), froms, Kind.KI) == Relative.M
    assert assign_relative("B", (5, 5), (5, 6), froms, Kind.KI) == Relative.U


def test_drop_token_selects_nothing():
    froms = [(3, 9), (5, 9)]
    assert filter_by_relative("B", (4, 8), froms, Relative.H) == []


def test_assign_relative_raises_when_no_token_fits():
    with pytest.raises(AmbiguousOrigin) as ei:
        assign_relative("B", (5, 5), (5, 6), [(5, 6), (5, 6)], Kind.KI)
    assert ei.value.candidates == [(5, 6), (5, 6)]


@pytest.mark.parametrize(
    "color,kind,origins,to_sq",
    [
        ("B", Kind.GI, [(3, 9), (5, 9)], (4, 8)),
        ("B", Kind.KI, [(4, 6), (5, 6), (6, 6)], (5, 5)),
        ("B", Kind.KI, [(4, 5), (6, 5), (5, 6), (5, 4)], (5, 5)),
        ("W", Kind.GI, [(4, 4), (6, 6), (6, 4)], (5, 5)),
        ("B", Kind.RY, [(5, 9), (4, 4)], (5, 5)),
        ("W", Kind.UM, [(1, 9), (6, 4)], (5, 5)),
    ],
)
def test_assigned_tokens_are_distinct_and_resolve_back(color, kind, origins, to_sq):
    pos = _pos(*[(sq, color, kind) for sq in origins])
    froms = candidate_origins(pos, to_sq, Piece(color, kind))
    assert froms == sorted(origins)
    tokens = [assign_relative(color, to_sq, sq, froms, kind) for sq in froms]
    assert len(set(tokens)) == len(tokens)
    for sq, rel in zip(froms, tokens):
        assert filter_by_relative(color, to_sq, froms, rel) == [sq]
