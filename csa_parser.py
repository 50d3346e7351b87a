from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import re

from models import (
    Board,
    GameRecord,
    HAND_KINDS,
    Hands,
    Initial,
    Kind,
    MoveRecord,
    MoveTime,
    Piece,
    Preset,
    Relative,
    Special,
    StateData,
    Step,
    empty_board,
    empty_hands,
)
from constants import TOTAL_COUNTS, hirate_board
from errors import ParseError
from normalizer import normalize

# ----------------- CSA (fully explicit) -----------------
#
# V2.2
# N+sente
# N-gote
# PI
# +
# +7776FU
# T12
# -3334FU,T5
# %TORYO

CSA_HEADER_KEYS: Dict[str, str] = {
    "EVENT": "棋戦",
    "SITE": "場所",
    "START_TIME": "開始日時",
    "END_TIME": "終了日時",
    "TIME_LIMIT": "持ち時間",
    "OPENING": "戦型",
}

_KINDS = {k.value: k for k in Kind}
_SPECIALS = {s.value: s for s in Special}
_MOVE_RE = re.compile(r"^([+-])(\d)(\d)(\d)(\d)([A-Z]{2})$")
_TIME_RE = re.compile(r"^T(\d+)$")


class _PositionLines:
    """P行の集計（盤面の確定は全部読んでから）"""

    def __init__(self) -> None:
        self.bulk: Optional[Board] = None
        self.bulk_lines: Dict[Tuple[int, int], int] = {}
        self.pi_drops: Optional[List[Tuple[int, int]]] = None
        self.pi_line: int = 0
        # 枚数超過の報告用に、それぞれ書かれていた行番号を持つ
        self.placements: List[Tuple[str, Tuple[int, int], Kind, int]] = []
        self.hand_pieces: List[Tuple[str, Kind, int]] = []
        self.all_color: Optional[str] = None
        self.color: Optional[str] = None

    @property
    def seen(self) -> bool:
        return (
            self.bulk is not None
            or self.pi_drops is not None
            or bool(self.placements)
            or bool(self.hand_pieces)
            or self.all_color is not None
        )

    def to_initial(self) -> Initial:
        line_of: Dict[Tuple[int, int], int] = {}
        if self.bulk is not None:
            board = dict(self.bulk)
            line_of.update(self.bulk_lines)
        elif self.pi_drops is not None:
            board = hirate_board()
            for sq in self.pi_drops:
                board[sq] = None
            line_of = {sq: self.pi_line for sq in board}
        else:
            board = empty_board()
        for color, sq, kind, lineno in self.placements:
            board[sq] = Piece(color, kind)
            line_of[sq] = lineno

        # 盤上の駒を先に数え、明示された持駒を引いてから AL に残りを渡す
        remaining = {k: n for k, n in TOTAL_COUNTS.items() if k != Kind.OU}
        last_line: Dict[Kind, int] = {}
        for sq, p in board.items():
            if p is not None and p.kind != Kind.OU:
                kind = p.kind.unpromoted()
                remaining[kind] -= 1
                last_line[kind] = max(last_line.get(kind, 0), line_of.get(sq, 0))
        hands: Hands = empty_hands()
        for color, kind, lineno in self.hand_pieces:
            hands[color][kind] = hands[color].get(kind, 0) + 1
            remaining[kind] -= 1
            last_line[kind] = max(last_line.get(kind, 0), lineno)
        if self.all_color is not None:
            for kind in HAND_KINDS:
                n = remaining[kind]
                if n > 0:
                    hands[self.all_color][kind] = hands[self.all_color].get(kind, 0) + n
        for kind, n in remaining.items():
            if n < 0:
                raise ParseError(f"駒の枚数が多すぎます: {kind.value}", last_line.get(kind) or None, 1)

        return Initial(
            preset=Preset.OTHER,
            data=StateData(color=self.color or "B", board=board, hands=hands),
        )


def _kind(code: str, lineno: int, col: int) -> Kind:
    kind = _KINDS.get(code)
    if kind is None:
        raise ParseError(f"駒種が読めません: {code}", lineno, col)
    return kind


def _parse_bulk_row(stmt: str, lineno: int, pos: _PositionLines) -> None:
    r = int(stmt[1])
    if pos.bulk is None:
        pos.bulk = empty_board()
    body = stmt[2:]
    if len(body) < 27:
        body = body.ljust(27)
    for col in range(9):
        cell = body[col * 3:col * 3 + 3]
        sq = (9 - col, r)
        if cell.strip() == "*" or not cell.strip():
            pos.bulk[sq] = None
            pos.bulk_lines.pop(sq, None)
            continue
        if cell[0] not in "+-":
            raise ParseError(f"盤面の升が読めません: {cell}", lineno, 3 + col * 3)
        color = "B" if cell[0] == "+" else "W"
        pos.bulk[sq] = Piece(color, _kind(cell[1:], lineno, 4 + col * 3))
        pos.bulk_lines[sq] = lineno


def _parse_pieces(stmt: str, lineno: int, pos: _PositionLines) -> None:
    """P+00KA00AL / P-5152OU / PI82HI22KA"""
    head = stmt[:2]
    body = stmt[2:]
    if head == "PI":
        pos.pi_line = lineno
        if pos.pi_drops is None:
            pos.pi_drops = []
    if len(body) % 4 != 0:
        raise ParseError("駒の指定は4文字ずつです", lineno, 3)
    for n in range(0, len(body), 4):
        chunk = body[n:n + 4]
        col = 3 + n
        if not chunk[:2].isdigit():
            raise ParseError(f"マスが読めません: {chunk}", lineno, col)
        sq = (int(chunk[0]), int(chunk[1]))
        if head == "PI":
            if sq == (0, 0):
                raise ParseError("PI に持駒は書けません", lineno, col)
            _kind(chunk[2:], lineno, col + 2)
            pos.pi_drops = (pos.pi_drops or []) + [sq]
            continue
        color = "B" if head == "P+" else "W"
        if sq == (0, 0):
            if chunk[2:] == "AL":
                pos.all_color = color
                continue
            kind = _kind(chunk[2:], lineno, col + 2)
            if kind not in HAND_KINDS:
                raise ParseError(f"持駒にできない駒です: {kind.value}", lineno, col + 2)
            pos.hand_pieces.append((color, kind, lineno))
            continue
        if not (1 <= sq[0] <= 9 and 1 <= sq[1] <= 9):
            raise ParseError(f"マスが不正です: {chunk[:2]}", lineno, col)
        pos.placements.append((color, sq, _kind(chunk[2:], lineno, col + 2), lineno))


def _parse_move(stmt: str, lineno: int) -> MoveRecord:
    m = _MOVE_RE.match(stmt)
    if not m:
        raise ParseError(f"指し手が読めません: {stmt}", lineno, 1)
    color = "B" if m.group(1) == "+" else "W"
    ff, fr, tf, tr = (int(m.group(k)) for k in range(2, 6))
    if not (1 <= tf <= 9 and 1 <= tr <= 9):
        raise ParseError(f"移動先が不正です: {tf}{tr}", lineno, 4)
    kind = _kind(m.group(6), lineno, 6)
    if (ff, fr) == (0, 0):
        return MoveRecord(color=color, to_sq=(tf, tr), piece=kind, relative=Relative.H)
    if not (1 <= ff <= 9 and 1 <= fr <= 9):
        raise ParseError(f"移動元が不正です: {ff}{fr}", lineno, 2)
    # CSA の駒種は移動後のもの。成りかどうかは正規化で決まる
    return MoveRecord(color=color, to_sq=(tf, tr), piece=kind, from_sq=(ff, fr))


def parse_csa(text: str) -> GameRecord:
    """CSA テキスト → 未正規化の GameRecord"""
    header: Dict[str, str] = {}
    pos = _PositionLines()
    moves: List[Step] = [Step()]
    in_moves = False

    for idx, raw in enumerate(text.lstrip("\ufeff").splitlines()):
        lineno = idx + 1
        line = raw.rstrip("\r\n")
        if not line.strip() or line.startswith("'"):
            continue
        # 一括盤面（P1〜P9）はカンマ区切りにしない
        stmts = [line] if re.match(r"^P[1-9]", line) else line.split(",")
        for stmt in stmts:
            stmt = stmt.rstrip()
            if not stmt:
                continue
            if stmt.startswith("V"):
                continue
            if stmt.startswith("N+"):
                header["先手"] = stmt[2:]
            elif stmt.startswith("N-"):
                header["後手"] = stmt[2:]
            elif stmt.startswith("$"):
                key, sep, value = stmt[1:].partition(":")
                if not sep:
                    raise ParseError(f"$ 行に ':' がありません: {stmt}", lineno, 1)
                header[CSA_HEADER_KEYS.get(key, key)] = value
            elif re.match(r"^P[1-9]", stmt):
                _parse_bulk_row(stmt, lineno, pos)
            elif stmt.startswith(("PI", "P+", "P-")):
                _parse_pieces(stmt, lineno, pos)
            elif stmt in ("+", "-") and not in_moves:
                pos.color = "B" if stmt == "+" else "W"
                in_moves = True
            elif stmt[0] in "+-":
                in_moves = True
                moves.append(Step(move=_parse_move(stmt, lineno)))
            elif stmt.startswith("%"):
                special = _SPECIALS.get(stmt[1:])
                if special is None:
                    raise ParseError(f"未対応の終局表記です: {stmt}", lineno, 1)
                moves.append(Step(special=special))
            elif stmt.startswith("T"):
                tm = _TIME_RE.match(stmt)
                if tm is None:
                    raise ParseError(f"消費時間が読めません: {stmt}", lineno, 1)
                if len(moves) == 1:
                    raise ParseError("指し手の前に消費時間があります", lineno, 1)
                moves[-1].time = MoveTime(now=int(tm.group(1)))
            else:
                raise ParseError(f"読めない行です: {stmt}", lineno, 1)

    # 局面の指定が無ければ平手
    initial = pos.to_initial() if pos.seen else Initial(preset=Preset.HIRATE)
    return GameRecord(header=header, initial=initial, moves=moves)


def parse_csa_str(text: str) -> GameRecord:
    """CSA テキストを読み、正規化まで済ませる"""
    return normalize(parse_csa(text))
