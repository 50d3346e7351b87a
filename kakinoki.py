#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
kakinoki.py

KIF / KI2 に共通する部品:
駒名・マス・漢数字・持駒・盤面図・ヘッダ行・コメント・変化の組み立て。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from constants import FW_DIGITS, KIND_TO_PYO, PIECES_LONGEST, PRESET_JP, RANK_KANJI, preset_side_to_move
from errors import ParseError
from helpers import hand_to_kif
from models import (
    Board,
    HAND_KINDS,
    Hands,
    Initial,
    Kind,
    Piece,
    Preset,
    Square,
    StateData,
    Step,
    empty_board,
    empty_hands,
    lift_sibling_forks,
)


_FILE_CHARS = {ch: i for i, ch in FW_DIGITS.items() if i > 0}
_FILE_CHARS.update({str(i): i for i in range(1, 10)})
_RANK_CHARS = {ch: r for r, ch in RANK_KANJI.items()}
_RANK_CHARS.update(_FILE_CHARS)

_KANJI_DIGITS = {"一":1,"二":2,"三":3,"四":4,"五":5,"六":6,"七":7,"八":8,"九":9}
_COUNT_CHARS = set(_KANJI_DIGITS) | {"十"}

_PRESET_BY_NAME = {name: preset for preset, name in PRESET_JP.items()}

BOARD_HEADER = "  ９ ８ ７ ６ ５ ４ ３ ２ １"
BOARD_BORDER = "+---------------------------+"

FORK_HEADER = "変化："

_HAND_KEYS = {
    "先手の持駒": "B", "下手の持駒": "B",
    "後手の持駒": "W", "上手の持駒": "W",
}
_TURN_LINES = {"先手番": "B", "下手番": "B", "後手番": "W", "上手番": "W"}


# ----------------- tokens -----------------

def match_kind(s: str, i: int = 0) -> Optional[Tuple[Kind, int]]:
    """s[i:] 先頭の駒名。(駒種, 次の位置)"""
    for name, kind in PIECES_LONGEST:
        if s.startswith(name, i):
            return kind, i + len(name)
    return None


def match_square(s: str, i: int = 0) -> Optional[Tuple[Square, int]]:
    """'７六' / '76' のようなマス"""
    if i + 2 > len(s):
        return None
    f = _FILE_CHARS.get(s[i])
    r = _RANK_CHARS.get(s[i + 1])
    if f is None or r is None:
        return None
    return (f, r), i + 2


def kansuji_to_int(s: str) -> int:
    """Parse counts like '二','十','十七'. Empty means 1."""
    s = s.strip()
    if not s:
        return 1
    if s.isdigit():
        return int(s)
    if s == "十":
        return 10
    if s.startswith("十") and len(s) == 2 and s[1] in _KANJI_DIGITS:
        return 10 + _KANJI_DIGITS[s[1]]
    if s in _KANJI_DIGITS:
        return _KANJI_DIGITS[s]
    raise ValueError(f"枚数が読めません: {s}")


def parse_hand(value: str) -> Dict[Kind, int]:
    """'飛　角二　歩十七' / 'なし' → {Kind: count}"""
    value = value.strip(" 　")
    out: Dict[Kind, int] = {}
    if not value or value == "なし":
        return out
    i = 0
    while i < len(value):
        if value[i] in " 　":
            i += 1
            continue
        m = match_kind(value, i)
        if m is None:
            raise ValueError(f"持駒が読めません: {value[i:]}")
        kind, i = m
        if kind not in HAND_KINDS:
            raise ValueError(f"持駒にできない駒です: {kind.value}")
        j = i
        while j < len(value) and (value[j] in _COUNT_CHARS or value[j].isdigit()):
            j += 1
        out[kind] = out.get(kind, 0) + kansuji_to_int(value[i:j])
        i = j
    return out


def comment_of(line: str) -> Optional[str]:
    """'*...' はコメント本文、'&...' はしおり（& 付きのまま）"""
    if line.startswith("*"):
        return line[1:]
    if line.startswith("&"):
        return line
    return None


# ----------------- board diagram -----------------

def is_board_header(line: str) -> bool:
    return line.rstrip() == BOARD_HEADER.rstrip()


def _consume_one_cell(row: str, i: int, lineno: int) -> Tuple[Optional[Piece], int]:
    """' ・' / ' 歩' / 'v成香' をひとつ読む"""
    if i >= len(row):
        raise ParseError("盤面の升が足りません", lineno, i + 1)
    head = row[i]
    if head not in (" ", "v"):
        raise ParseError("盤面の升は ' ' か 'v' で始まります", lineno, i + 1)
    if row.startswith("・", i + 1):
        return None, i + 2
    m = match_kind(row, i + 1)
    if m is None:
        raise ParseError("盤面の駒が読めません", lineno, i + 2)
    kind, end = m
    return Piece("W" if head == "v" else "B", kind), end


def parse_board(lines: List[str], i: int) -> Tuple[Board, int]:
    """lines[i] が盤面図の見出し行。読み終えた次の行番号を返す"""
    if i + 12 > len(lines):
        raise ParseError("盤面図が途中で終わっています", len(lines))
    if lines[i + 1].rstrip() != BOARD_BORDER:
        raise ParseError("盤面図の枠がありません", i + 2, 1)
    board = empty_board()
    for r in range(1, 10):
        lineno = i + 2 + r
        row = lines[i + 1 + r].rstrip()
        if not row.startswith("|"):
            raise ParseError("盤面図の行は '|' で始まります", lineno, 1)
        pos = 1
        for col in range(9):
            p, pos = _consume_one_cell(row, pos, lineno)
            board[(9 - col, r)] = p
        if not row.startswith("|", pos) or row[pos + 1:pos + 2] != RANK_KANJI[r]:
            raise ParseError(f"盤面図の段見出し（{RANK_KANJI[r]}）がありません", lineno, pos + 1)
    if lines[i + 11].rstrip() != BOARD_BORDER:
        raise ParseError("盤面図の枠がありません", i + 12, 1)
    return board, i + 12


def board_to_piyo(board: Board) -> List[str]:
    lines: List[str] = [BOARD_HEADER, BOARD_BORDER]
    for r in range(1, 10):
        row: List[str] = []
        for f in range(9, 0, -1):
            p = board.get((f, r))
            if p is None:
                row.append(" ・")
            else:
                row.append(("v" if p.color == "W" else " ") + KIND_TO_PYO[p.kind])
        lines.append("|" + "".join(row) + f"|{RANK_KANJI[r]}")
    lines.append(BOARD_BORDER)
    return lines


# ----------------- header section -----------------

@dataclass
class HeaderInfo:
    header: Dict[str, str] = field(default_factory=dict)
    preset: Optional[Preset] = None
    hands: Hands = field(default_factory=empty_hands)
    board: Optional[Board] = None
    color: Optional[str] = None
    preset_line: Optional[int] = None

    def initial(self) -> Initial:
        if self.board is not None:
            return Initial(
                preset=Preset.OTHER,
                data=StateData(color=self.color or "B", board=self.board, hands=self.hands),
            )
        return Initial(preset=self.preset or Preset.HIRATE)


def first_mover(initial: Optional[Initial]) -> str:
    """初手を指す側。駒落ちは上手（後手）、盤面図なら手番の行に従う"""
    if initial is None:
        return "B"
    if initial.data is not None:
        return initial.data.color
    return preset_side_to_move(initial.preset)


def parse_header_section(
    lines: List[str], stop: Callable[[str], bool], i: int = 0
) -> Tuple[HeaderInfo, int]:
    """ヘッダ・盤面図・持駒を読む。指し手部分の最初の行番号を返す"""
    info = HeaderInfo()
    while i < len(lines):
        line = lines[i]
        if not line.strip() or line.startswith("#"):
            i += 1
            continue
        if is_board_header(line):
            info.board, i = parse_board(lines, i)
            continue
        if stop(line):
            break
        stripped = line.strip()
        if stripped in _TURN_LINES:
            info.color = _TURN_LINES[stripped]
            i += 1
            continue
        if "：" not in line:
            break
        key, value = line.split("：", 1)
        if key == "手合割":
            name = value.strip(" 　")
            if name not in _PRESET_BY_NAME:
                raise ParseError(f"未対応の手合割です: {name}", i + 1, len(key) + 2)
            info.preset = _PRESET_BY_NAME[name]
            info.preset_line = i + 1
        elif key in _HAND_KEYS:
            try:
                info.hands[_HAND_KEYS[key]] = parse_hand(value)
            except ValueError as e:
                raise ParseError(str(e), i + 1, len(key) + 2) from e
        else:
            info.header[key] = value
        i += 1
    if info.preset == Preset.OTHER and info.board is None:
        raise ParseError("手合割「その他」には盤面図が必要です", info.preset_line)
    return info, i


# ----------------- forks -----------------

def merge_forks(main: List[Step], forks: List[Tuple[int, List[Step]]]) -> List[Step]:
    """
    入力順に並んだ変化ブロック (開始手数, 手順) を木に組み立てる。
    main[0] はプレースホルダなので main[i] が i 手目。
    後ろのブロックから順に、直前のブロック（開始手数が小さいか等しい）へ吸収させる。
    """
    forks = list(forks)
    stack: List[Tuple[int, List[Step]]] = []
    while forks:
        stack.append(forks.pop())
        if forks:
            i, last = forks[-1]
            while stack and stack[-1][0] >= i:
                j, fork = stack.pop()
                if j - i >= len(last):
                    raise ParseError(f"変化：{j}手 の分岐元がありません")
                last[j - i].forks.append(fork)
    while stack:
        i, fork = stack.pop()
        if not 1 <= i < len(main):
            raise ParseError(f"変化：{i}手 の分岐元がありません")
        main[i].forks.append(fork)
    _lift_tree(main)
    return main


def _lift_tree(steps: List[Step]) -> None:
    # 同じ手数の変化は先の変化の先頭に吸収されるので、分岐元の兄弟に戻す
    for step in steps:
        step.forks = lift_sibling_forks(step.forks)
        for fork in step.forks:
            _lift_tree(fork)


def iter_fork_blocks(steps: List[Step], first_ply: int) -> Iterator[Tuple[int, List[Step]]]:
    """merge_forks が元の木に戻せる順（開始手数の降順、子はすぐ後）"""
    for idx in range(len(steps) - 1, -1, -1):
        for fork in steps[idx].forks:
            yield first_ply + idx, fork
            yield from iter_fork_blocks(fork, first_ply + idx)


# ----------------- rendering -----------------

def header_lines(header: Dict[str, str]) -> List[str]:
    return [f"{k}：{v}" for k, v in header.items()]


def initial_lines(initial: Optional[Initial], omit_hirate: bool) -> List[str]:
    if initial is None:
        return [] if omit_hirate else [f"手合割：{PRESET_JP[Preset.HIRATE]}"]
    if initial.data is None:
        if omit_hirate and initial.preset == Preset.HIRATE:
            return []
        return [f"手合割：{PRESET_JP[initial.preset]}"]
    data = initial.data
    lines = [f"手合割：{PRESET_JP[Preset.OTHER]}"]
    lines.append("後手の持駒：" + hand_to_kif(data.hands.get("W", {})))
    lines += board_to_piyo(data.board)
    lines.append("先手の持駒：" + hand_to_kif(data.hands.get("B", {})))
    if data.color == "W":
        lines.append("後手番")
    return lines


def comment_lines(comments: List[str]) -> List[str]:
    return [c if c.startswith("&") else "*" + c for c in comments]
