#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
normalizer.py

パーサが作った「不完全な」棋譜を局面に沿って再生し、
移動元・成り・取った駒・同・相対位置・累計消費時間を埋める。
分岐は分岐点直前の局面と累計時間から独立に再生する。
どこかで失敗したら棋譜全体を失敗として例外を投げる。
"""

from __future__ import annotations

from typing import Dict, List, Optional

from loguru import logger

from models import GameRecord, Initial, MoveRecord, Piece, Preset, Relative, Square, Step, lift_sibling_forks
from constants import PRESET_DROPS, preset_board, preset_side_to_move
from position import ShogiPosition, on_board
from candidates import assign_relative, candidate_origins, filter_by_relative
from errors import (
    AmbiguousOrigin,
    IllegalMove,
    InvalidSquare,
    MoveApplicationFailed,
    NoPieceAt,
    NoPreviousMove,
)


__all__ = ["normalize", "normalize_moves", "normalize_move", "normalize_initial"]


def normalize(record: GameRecord) -> GameRecord:
    """record をその場で正規化して返す（2回目以降は何も変わらない）"""
    normalize_initial(record)
    pos = ShogiPosition.from_initial(record.initial)
    normalize_moves(record.moves[1:], pos, {"B": 0, "W": 0})
    return record


def normalize_initial(record: GameRecord) -> None:
    """局面データが駒落ちプリセットと一致すればプリセット表記に戻す"""
    initial = record.initial
    if initial is None or initial.data is None:
        return
    data = initial.data
    if any(n > 0 for c in ("B", "W") for n in data.hands.get(c, {}).values()):
        return
    board = {sq: data.board.get(sq) for sq in preset_board(Preset.HIRATE)}
    for preset in PRESET_DROPS:
        if data.color == preset_side_to_move(preset) and board == preset_board(preset):
            record.initial = Initial(preset=preset, data=None)
            return


def normalize_moves(steps: List[Step], pos: ShogiPosition, totals: Dict[str, int]) -> None:
    for step in steps:
        # 分岐はこの手を指す前の局面から。同じ手数の変化は兄弟に揃える
        step.forks = lift_sibling_forks(step.forks)
        for fork in step.forks:
            logger.debug("fork: {} steps from ply {}", len(fork), len(pos.history()) + 1)
            normalize_moves(fork, pos.clone(), dict(totals))

        if step.time is not None:
            color = pos.side_to_move
            totals[color] += step.time.now
            step.time.total = totals[color]

        if step.move is None:
            break
        normalize_move(step.move, pos)
        try:
            pos.make_move(step.move)
        except IllegalMove as e:
            raise MoveApplicationFailed(step.move, str(e)) from e


def _in_zone(sq: Square, color: str) -> bool:
    rank = sq[1] if color == "B" else 10 - sq[1]
    return rank <= 3


def _calculate_from(mv: MoveRecord, pos: ShogiPosition) -> Optional[Square]:
    color = pos.side_to_move
    froms = candidate_origins(pos, mv.to_sq, Piece(color, mv.piece))
    if not froms:
        return None
    if len(froms) == 1:
        return froms[0]
    if mv.relative is None:
        raise AmbiguousOrigin(froms)
    survivors = filter_by_relative(color, mv.to_sq, froms, mv.relative)
    if len(survivors) != 1:
        raise AmbiguousOrigin(froms)
    logger.debug("resolved {} by {}: {}", mv.piece.value, mv.relative.value, survivors[0])
    return survivors[0]


def _relative_of(mv: MoveRecord, pos: ShogiPosition) -> Optional[Relative]:
    color = mv.color
    froms = candidate_origins(pos, mv.to_sq, Piece(color, mv.piece))
    if mv.from_sq is None:
        return Relative.H if froms else None
    if len(froms) < 2 or mv.from_sq not in froms:
        return None
    if mv.relative is not None and filter_by_relative(color, mv.to_sq, froms, mv.relative) == [mv.from_sq]:
        return mv.relative
    return assign_relative(color, mv.to_sq, mv.from_sq, froms, mv.piece)


def normalize_move(mv: MoveRecord, pos: ShogiPosition) -> None:
    color = pos.side_to_move
    mv.color = color

    if mv.same:
        last = pos.last_move()
        if last is None:
            raise NoPreviousMove()
        mv.to_sq = last.to_sq
    if not on_board(mv.to_sq):
        raise InvalidSquare(mv.to_sq)
    if mv.from_sq is not None and not on_board(mv.from_sq):
        raise InvalidSquare(mv.from_sq)

    # 打 と明示されていれば盤上の候補は探さない
    if mv.from_sq is None and mv.relative != Relative.H:
        mv.from_sq = _calculate_from(mv, pos)

    if mv.from_sq is not None:
        origin = pos.piece_at(mv.from_sq)
        if origin is None or origin.color != color:
            raise NoPieceAt(mv.from_sq)
        from_kind = origin.kind
        to_kind = mv.post_kind()
        if to_kind not in (from_kind, from_kind.promoted()):
            raise NoPieceAt(mv.from_sq)
        mv.piece = from_kind

        last = pos.last_move()
        mv.same = True if last is not None and last.to_sq == mv.to_sq else None

        if from_kind.is_promotable and (_in_zone(mv.from_sq, color) or _in_zone(mv.to_sq, color)):
            mv.promote = from_kind != to_kind
        else:
            mv.promote = None

        captured = pos.piece_at(mv.to_sq)
        mv.capture = captured.kind if captured is not None else None
    else:
        mv.promote = None
        mv.capture = None

    mv.relative = _relative_of(mv, pos)
