#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from typing import Dict, List, Optional

from models import GameRecord, HAND_KINDS, Kind, MoveRecord, Piece, Preset, Square
from constants import HAND_ORDER
from errors import ConvertError
from position import ShogiPosition, replay

# USI の駒文字（成駒は '+' を前置）
_USI_BASE: Dict[Kind, str] = {
    Kind.FU: "P", Kind.KY: "L", Kind.KE: "N", Kind.GI: "S",
    Kind.KI: "G", Kind.KA: "B", Kind.HI: "R", Kind.OU: "K",
}
_KIND_BY_USI = {ch: k for k, ch in _USI_BASE.items()}
_RANK_LETTERS = "abcdefghi"


def _piece_to_usi(p: Piece) -> str:
    ch = ("+" if p.kind.is_promoted else "") + _USI_BASE[p.kind.unpromoted()]
    return ch if p.color == "B" else ch.lower()


def hands_to_sfen(hands_b: Dict[Kind, int], hands_w: Dict[Kind, int]) -> str:
    parts: List[str] = []

    def add(kind: Kind, n: int, is_black: bool) -> None:
        if n <= 0:
            return
        c = _USI_BASE[kind] if is_black else _USI_BASE[kind].lower()
        parts.append(c if n == 1 else f"{n}{c}")

    for k in HAND_ORDER:
        add(k, hands_b.get(k, 0), True)
    for k in HAND_ORDER:
        add(k, hands_w.get(k, 0), False)

    return "-" if not parts else "".join(parts)


def board_to_sfen(board_map: Dict[Square, Optional[Piece]]) -> str:
    rows: List[str] = []
    for r in range(1, 10):
        empties = 0
        row = ""
        for f in range(9, 0, -1):
            p = board_map.get((f, r))
            if p is None:
                empties += 1
                continue
            if empties:
                row += str(empties)
                empties = 0
            row += _piece_to_usi(p)
        if empties:
            row += str(empties)
        rows.append(row)
    return "/".join(rows)


def position_to_sfen(pos: ShogiPosition, ply: int = 1) -> str:
    board_part = board_to_sfen(pos.board)
    turn = "b" if pos.side_to_move == "B" else "w"
    hands_part = hands_to_sfen(pos.hands["B"], pos.hands["W"])
    return f"{board_part} {turn} {hands_part} {ply}"


def position_from_sfen(sfen: str) -> ShogiPosition:
    """'sfen ...' / 'startpos' も受け付ける。手数は読み捨てる"""
    text = sfen.strip()
    if text == "startpos":
        return ShogiPosition.startpos()
    if text.startswith("sfen "):
        text = text[5:]
    parts = text.split()
    if len(parts) < 3:
        raise ConvertError("SFEN形式が不正です")
    board_part, turn_part, hands_part = parts[0], parts[1], parts[2]

    pos = ShogiPosition.empty()
    rows = board_part.split("/")
    if len(rows) != 9:
        raise ConvertError("SFEN盤面の段数が不正です")
    for r, row in enumerate(rows, start=1):
        f = 9
        i = 0
        while i < len(row):
            ch = row[i]
            if ch.isdigit():
                f -= int(ch)
                i += 1
                continue
            prom = False
            if ch == "+":
                prom = True
                i += 1
                if i >= len(row):
                    raise ConvertError("SFEN盤面の '+' の後に駒がありません")
                ch = row[i]
            kind = _KIND_BY_USI.get(ch.upper())
            if kind is None or f < 1:
                raise ConvertError(f"SFEN盤面が不正です: {row}")
            if prom:
                if not kind.is_promotable:
                    raise ConvertError(f"成れない駒です: +{ch}")
                kind = kind.promoted()
            pos.set_piece((f, r), Piece("B" if ch.isupper() else "W", kind))
            f -= 1
            i += 1
        if f != 0:
            raise ConvertError(f"SFEN盤面の筋数が不正です: {row}")

    if turn_part not in ("b", "w"):
        raise ConvertError(f"SFENの手番が不正です: {turn_part}")
    pos.side_to_move = "B" if turn_part == "b" else "W"

    if hands_part != "-":
        i = 0
        while i < len(hands_part):
            # 枚数は2桁のこともある
            j = i
            while j < len(hands_part) and hands_part[j].isdigit():
                j += 1
            cnt = int(hands_part[i:j]) if j > i else 1
            if j >= len(hands_part):
                raise ConvertError("SFENの持駒が不正です")
            pch = hands_part[j]
            kind = _KIND_BY_USI.get(pch.upper())
            if kind is None or kind not in HAND_KINDS:
                raise ConvertError(f"SFENの持駒が不正です: {pch}")
            color = "B" if pch.isupper() else "W"
            pos.set_hand(color, kind, pos.hands[color].get(kind, 0) + cnt)
            i = j + 1
    return pos


def _sq_to_usi(sq: Square) -> str:
    return f"{sq[0]}{_RANK_LETTERS[sq[1] - 1]}"


def move_to_usi(mv: MoveRecord) -> str:
    """'7g7f' / '8h2b+' / 'P*5e'"""
    if mv.from_sq is None:
        return f"{_USI_BASE[mv.piece]}*{_sq_to_usi(mv.to_sq)}"
    return _sq_to_usi(mv.from_sq) + _sq_to_usi(mv.to_sq) + ("+" if mv.promote else "")


def record_to_usi(record: GameRecord) -> str:
    """正規化済みの本譜を USI の position コマンドにする"""
    initial = record.initial
    moves = []
    for step in record.moves[1:]:
        if step.move is None:
            break
        moves.append(step.move)

    if initial is None or (initial.data is None and initial.preset == Preset.HIRATE):
        head = "position startpos"
    else:
        head = "position sfen " + position_to_sfen(replay(initial, []))
    if not moves:
        return head
    return head + " moves " + " ".join(move_to_usi(mv) for mv in moves)
