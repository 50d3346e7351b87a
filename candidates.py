#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
candidates.py

移動先と駒から「その駒がどこから来られるか」を列挙する。
王手・ピンなどの合法性は見ない（盤上の利きだけ）。
相対位置（左・右・上・引・寄・直）での絞り込みと付与もここ。
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from models import Kind, Piece, Relative, Square
from position import ShogiPosition, on_board
from errors import AmbiguousOrigin


__all__ = ["candidate_origins", "filter_by_relative", "assign_relative"]


Offset = Tuple[int, int]

# 先手から見た (筋の差, 段の差)。前進は段が減る方向
_GOLD: List[Offset] = [(0, -1), (1, -1), (-1, -1), (1, 0), (-1, 0), (0, 1)]
_KING: List[Offset] = [(df, dr) for df in (-1, 0, 1) for dr in (-1, 0, 1) if (df, dr) != (0, 0)]
_ORTHO: List[Offset] = [(0, -1), (1, 0), (-1, 0), (0, 1)]
_DIAG: List[Offset] = [(1, -1), (-1, -1), (1, 1), (-1, 1)]

_STEPS: Dict[Kind, List[Offset]] = {
    Kind.FU: [(0, -1)],
    Kind.KE: [(1, -2), (-1, -2)],
    Kind.GI: [(0, -1), (1, -1), (-1, -1), (1, 1), (-1, 1)],
    Kind.KI: _GOLD,
    Kind.TO: _GOLD,
    Kind.NY: _GOLD,
    Kind.NK: _GOLD,
    Kind.NG: _GOLD,
    Kind.OU: _KING,
    Kind.UM: _ORTHO,
    Kind.RY: _DIAG,
}

_RAYS: Dict[Kind, List[Offset]] = {
    Kind.KY: [(0, -1)],
    Kind.KA: _DIAG,
    Kind.UM: _DIAG,
    Kind.HI: _ORTHO,
    Kind.RY: _ORTHO,
}


def candidate_origins(pos: ShogiPosition, to_sq: Square, piece: Piece) -> List[Square]:
    """to_sq へ動ける piece（色・駒種一致）の位置。(筋, 段) 順"""
    sign = 1 if piece.color == "B" else -1
    tf, tr = to_sq
    found = set()

    for df, dr in _STEPS.get(piece.kind, []):
        sq = (tf - sign * df, tr - sign * dr)
        if on_board(sq) and pos.board[sq] == piece:
            found.add(sq)

    for df, dr in _RAYS.get(piece.kind, []):
        f, r = tf - sign * df, tr - sign * dr
        while 1 <= f <= 9 and 1 <= r <= 9:
            p = pos.board[(f, r)]
            if p is not None:
                if p == piece:
                    found.add((f, r))
                break
            f -= sign * df
            r -= sign * dr

    return sorted(found)


def _rel_file(sq: Square, color: str) -> int:
    return sq[0] if color == "B" else 10 - sq[0]


def _rel_rank(sq: Square, color: str) -> int:
    return sq[1] if color == "B" else 10 - sq[1]


def _matches(color: str, to_sq: Square, sq: Square, relative: Relative) -> bool:
    left = _rel_file(sq, color) > _rel_file(to_sq, color)
    right = _rel_file(sq, color) < _rel_file(to_sq, color)
    up = _rel_rank(sq, color) > _rel_rank(to_sq, color)
    down = _rel_rank(sq, color) < _rel_rank(to_sq, color)
    level = sq[1] == to_sq[1]

    if relative == Relative.L:
        return left
    if relative == Relative.R:
        return right
    if relative == Relative.C:
        return sq[0] == to_sq[0] and up
    if relative == Relative.U:
        return up
    if relative == Relative.M:
        return level
    if relative == Relative.D:
        return down
    if relative == Relative.LU:
        return left and up
    if relative == Relative.LM:
        return left and level
    if relative == Relative.LD:
        return left and down
    if relative == Relative.RU:
        return right and up
    if relative == Relative.RM:
        return right and level
    if relative == Relative.RD:
        return right and down
    # 打 は盤上の駒を選ばない
    return False


def filter_by_relative(
    color: str, to_sq: Square, candidates: Sequence[Square], relative: Relative
) -> List[Square]:
    return [sq for sq in candidates if _matches(color, to_sq, sq, relative)]


_MOTION_FIRST = [
    Relative.U, Relative.M, Relative.D,
    Relative.L, Relative.R, Relative.C,
    Relative.LU, Relative.LM, Relative.LD,
    Relative.RU, Relative.RM, Relative.RD,
]
# 竜・馬は「直」を使わず左右を優先する
_SIDE_FIRST = [
    Relative.L, Relative.R,
    Relative.U, Relative.M, Relative.D,
    Relative.LU, Relative.LM, Relative.LD,
    Relative.RU, Relative.RM, Relative.RD,
    Relative.C,
]


def assign_relative(
    color: str, to_sq: Square, origin: Square, candidates: Sequence[Square], kind: Kind
) -> Relative:
    """origin だけを選び直せる最初の記号を返す"""
    order = _SIDE_FIRST if kind in (Kind.UM, Kind.RY) else _MOTION_FIRST
    for rel in order:
        if filter_by_relative(color, to_sq, candidates, rel) == [origin]:
            return rel
    raise AmbiguousOrigin(candidates)
