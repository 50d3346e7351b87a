#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


Square = Tuple[int, int]   # (筋, 段) 1..9


class Kind(Enum):
    FU = "FU"
    KY = "KY"
    KE = "KE"
    GI = "GI"
    KI = "KI"
    KA = "KA"
    HI = "HI"
    OU = "OU"
    TO = "TO"
    NY = "NY"
    NK = "NK"
    NG = "NG"
    UM = "UM"
    RY = "RY"

    @property
    def is_promotable(self) -> bool:
        return self in _PROMOTE

    @property
    def is_promoted(self) -> bool:
        return self in _UNPROMOTE

    def promoted(self) -> "Kind":
        return _PROMOTE.get(self, self)

    def unpromoted(self) -> "Kind":
        return _UNPROMOTE.get(self, self)


_PROMOTE: Dict[Kind, Kind] = {
    Kind.FU: Kind.TO,
    Kind.KY: Kind.NY,
    Kind.KE: Kind.NK,
    Kind.GI: Kind.NG,
    Kind.KA: Kind.UM,
    Kind.HI: Kind.RY,
}
_UNPROMOTE: Dict[Kind, Kind] = {v: k for k, v in _PROMOTE.items()}

# 持駒になれる駒
HAND_KINDS = (Kind.FU, Kind.KY, Kind.KE, Kind.GI, Kind.KI, Kind.KA, Kind.HI)


class Relative(Enum):
    L = "L"     # 左
    C = "C"     # 直
    R = "R"     # 右
    U = "U"     # 上
    M = "M"     # 寄
    D = "D"     # 引
    LU = "LU"
    LM = "LM"
    LD = "LD"
    RU = "RU"
    RM = "RM"
    RD = "RD"
    H = "H"     # 打


class Special(Enum):
    TORYO = "TORYO"
    CHUDAN = "CHUDAN"
    SENNICHITE = "SENNICHITE"
    TIME_UP = "TIME_UP"
    ILLEGAL_MOVE = "ILLEGAL_MOVE"
    ILLEGAL_ACTION_BLACK = "+ILLEGAL_ACTION"   # 先手の反則行為 → 後手の勝ち
    ILLEGAL_ACTION_WHITE = "-ILLEGAL_ACTION"   # 後手の反則行為 → 先手の勝ち
    JISHOGI = "JISHOGI"
    KACHI = "KACHI"
    HIKIWAKE = "HIKIWAKE"
    MATTA = "MATTA"
    TSUMI = "TSUMI"
    FUZUMI = "FUZUMI"
    ERROR = "ERROR"


class Preset(Enum):
    HIRATE = "HIRATE"
    KY = "KY"
    KY_R = "KY_R"
    KA = "KA"
    HI = "HI"
    HIKY = "HIKY"
    P2 = "2"
    P3 = "3"
    P4 = "4"
    P5 = "5"
    P5_L = "5_L"
    P6 = "6"
    P7_L = "7_L"
    P7_R = "7_R"
    P8 = "8"
    P10 = "10"
    OTHER = "OTHER"


@dataclass(frozen=True)
class Piece:
    color: str  # "B" (sente) or "W" (gote)
    kind: Kind


@dataclass
class MoveRecord:
    """One move. Fields other than to_sq/piece may be missing until normalized."""
    color: str
    to_sq: Optional[Square]          # None only for an unresolved "同"
    piece: Kind
    from_sq: Optional[Square] = None  # None => drop (or not yet resolved)
    same: Optional[bool] = None
    promote: Optional[bool] = None
    capture: Optional[Kind] = None
    relative: Optional[Relative] = None

    @property
    def is_drop(self) -> bool:
        return self.from_sq is None

    def post_kind(self) -> Kind:
        return self.piece.promoted() if self.promote else self.piece


@dataclass
class MoveTime:
    now: int        # seconds spent on this step
    total: int = 0  # mover's cumulative seconds (filled by the normalizer)


@dataclass
class Step:
    move: Optional[MoveRecord] = None
    special: Optional[Special] = None
    comments: List[str] = field(default_factory=list)
    time: Optional[MoveTime] = None
    # 分岐: それぞれがこの手以降を置き換える手順
    forks: List[List["Step"]] = field(default_factory=list)


Board = Dict[Square, Optional[Piece]]
Hands = Dict[str, Dict[Kind, int]]


def empty_board() -> Board:
    return {(f, r): None for f in range(1, 10) for r in range(1, 10)}


def empty_hands() -> Hands:
    return {"B": {}, "W": {}}


@dataclass
class StateData:
    color: str
    board: Board = field(default_factory=empty_board)
    hands: Hands = field(default_factory=empty_hands)


@dataclass
class Initial:
    preset: Preset = Preset.HIRATE
    data: Optional[StateData] = None


@dataclass
class GameRecord:
    header: Dict[str, str] = field(default_factory=dict)
    initial: Optional[Initial] = None
    # moves[0] は「1手目の前」のプレースホルダ（コメントのみ）
    moves: List[Step] = field(default_factory=lambda: [Step()])


@dataclass
class ConvertOptions:
    target: str = "kif"              # kif / ki2 / csa / jkf / usi
    output_dir: Optional[str] = None  # None => <source dir>/OUTPUT
    overwrite: bool = False


def opponent(color: str) -> str:
    return "W" if color == "B" else "B"


def lift_sibling_forks(forks: List[List[Step]]) -> List[List[Step]]:
    """
    変化の先頭の手に付いた変化は同じ手数の別の手なので、兄弟として横に並べ直す。
    並び順は元の出現順のまま。
    """
    out: List[List[Step]] = []
    for fork in forks:
        out.append(fork)
        if fork and fork[0].forks:
            inner, fork[0].forks = fork[0].forks, []
            out += lift_sibling_forks(inner)
    return out
