#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from models import (
    Board,
    HAND_KINDS,
    Hands,
    Initial,
    Kind,
    MoveRecord,
    Piece,
    Preset,
    Square,
    StateData,
    Step,
    empty_board,
    empty_hands,
    opponent,
)
from constants import preset_board, preset_side_to_move
from errors import ConvertError, IllegalMove, InvalidSquare


__all__ = ["ShogiPosition", "replay", "on_board"]


# 指し手履歴は (move, 前の履歴) の入れ子タプル。clone で共有しても壊れない
_History = Optional[Tuple[MoveRecord, "_History"]]


def on_board(sq: object) -> bool:
    return (
        isinstance(sq, tuple)
        and len(sq) == 2
        and all(isinstance(v, int) and 1 <= v <= 9 for v in sq)
    )


class ShogiPosition:
    def __init__(self) -> None:
        self.board: Board = empty_board()
        self.hands: Hands = empty_hands()
        self.side_to_move: str = "B"
        self._history: _History = None

    @classmethod
    def empty(cls) -> "ShogiPosition":
        return cls()

    @classmethod
    def startpos(cls) -> "ShogiPosition":
        return cls.from_preset(Preset.HIRATE)

    @classmethod
    def from_preset(cls, preset: Preset) -> "ShogiPosition":
        if preset == Preset.OTHER:
            raise ConvertError("手合割「その他」には局面データが必要です")
        pos = cls()
        pos.board = preset_board(preset)
        pos.side_to_move = preset_side_to_move(preset)
        return pos

    @classmethod
    def from_initial(cls, initial: Optional[Initial]) -> "ShogiPosition":
        if initial is None:
            return cls.startpos()
        if initial.data is None:
            return cls.from_preset(initial.preset)
        pos = cls()
        data = initial.data
        for sq, p in data.board.items():
            pos.set_piece(sq, p)
        for color in ("B", "W"):
            for kind, n in data.hands.get(color, {}).items():
                pos.set_hand(color, kind, n)
        pos.side_to_move = data.color
        return pos

    def clone(self) -> "ShogiPosition":
        other = ShogiPosition.__new__(ShogiPosition)
        other.board = dict(self.board)
        other.hands = {"B": dict(self.hands["B"]), "W": dict(self.hands["W"])}
        other.side_to_move = self.side_to_move
        other._history = self._history
        return other

    def to_state(self) -> StateData:
        return StateData(
            color=self.side_to_move,
            board=dict(self.board),
            hands={"B": dict(self.hands["B"]), "W": dict(self.hands["W"])},
        )

    # ---- board / hands ----
    def piece_at(self, sq: Square) -> Optional[Piece]:
        if not on_board(sq):
            raise InvalidSquare(sq)
        return self.board[sq]

    def set_piece(self, sq: Square, p: Optional[Piece]) -> None:
        if not on_board(sq):
            raise InvalidSquare(sq)
        self.board[sq] = p

    def hand_of(self, color: str) -> Dict[Kind, int]:
        return dict(self.hands[color])

    def set_hand(self, color: str, kind: Kind, n: int) -> None:
        if n <= 0:
            self.hands[color].pop(kind, None)
        else:
            self.hands[color][kind] = n

    def _remove_from_hand(self, color: str, kind: Kind) -> None:
        c = self.hands[color].get(kind, 0)
        if c <= 0:
            raise IllegalMove(f"持ち駒がありません: {kind.value}")
        if c == 1:
            del self.hands[color][kind]
        else:
            self.hands[color][kind] = c - 1

    def _add_to_hand(self, color: str, kind: Kind) -> None:
        self.hands[color][kind] = self.hands[color].get(kind, 0) + 1

    # ---- history ----
    def last_move(self) -> Optional[MoveRecord]:
        return self._history[0] if self._history is not None else None

    def history(self) -> List[MoveRecord]:
        out: List[MoveRecord] = []
        node = self._history
        while node is not None:
            out.append(node[0])
            node = node[1]
        out.reverse()
        return out

    # ---- move ----
    def make_move(self, mv: MoveRecord) -> Optional[Piece]:
        """Apply a fully specified move. Returns the captured piece, if any."""
        mover = self.side_to_move
        to = mv.to_sq
        if not on_board(to):
            raise IllegalMove(f"移動先が不正です: {to!r}")
        dest = self.board[to]
        if dest is not None and dest.color == mover:
            raise IllegalMove("移動先に自分の駒があります")

        if mv.from_sq is None:
            if dest is not None:
                raise IllegalMove("打ち先に駒があります")
            if mv.piece not in HAND_KINDS:
                raise IllegalMove(f"その駒は打てません: {mv.piece.value}")
            self._remove_from_hand(mover, mv.piece)
            self.board[to] = Piece(mover, mv.piece)
        else:
            frm = mv.from_sq
            if not on_board(frm):
                raise IllegalMove(f"移動元が不正です: {frm!r}")
            p = self.board[frm]
            if p is None or p.color != mover:
                raise IllegalMove("移動元に手番の駒がありません")
            if p.kind != mv.piece:
                raise IllegalMove(f"移動元の駒が違います: {p.kind.value} != {mv.piece.value}")
            kind = p.kind
            if mv.promote:
                if not kind.is_promotable:
                    raise IllegalMove("成れません")
                kind = kind.promoted()
            if dest is not None:
                if dest.kind == Kind.OU:
                    raise IllegalMove("玉は取れません")
                self._add_to_hand(mover, dest.kind.unpromoted())
            self.board[frm] = None
            self.board[to] = Piece(mover, kind)

        self.side_to_move = opponent(mover)
        self._history = (mv, self._history)
        return dest


def replay(initial: Optional[Initial], steps: Iterable[Step]) -> ShogiPosition:
    """正規化済みの手順を先頭から適用した局面（特殊手で止まる）"""
    pos = ShogiPosition.from_initial(initial)
    for step in steps:
        if step.move is None:
            break
        pos.make_move(step.move)
    return pos
