#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Dict, List, Tuple

from models import Board, Kind, Piece, Preset, Relative, Special, Square, empty_board

# ----------------- constants -----------------

FW_DIGITS = {i: ch for i, ch in enumerate("０１２３４５６７８９")}
RANK_KANJI = {1: "一", 2: "二", 3: "三", 4: "四", 5: "五", 6: "六", 7: "七", 8: "八", 9: "九"}

# 指し手表記（成香などは2文字）
KIND_JP: Dict[Kind, str] = {
    Kind.FU: "歩", Kind.KY: "香", Kind.KE: "桂", Kind.GI: "銀", Kind.KI: "金",
    Kind.KA: "角", Kind.HI: "飛", Kind.OU: "玉",
    Kind.TO: "と", Kind.NY: "成香", Kind.NK: "成桂", Kind.NG: "成銀",
    Kind.UM: "馬", Kind.RY: "龍",
}

# 盤面図（セル幅を揃えるため1文字）
KIND_TO_PYO: Dict[Kind, str] = dict(KIND_JP)
KIND_TO_PYO.update({Kind.NY: "杏", Kind.NK: "圭", Kind.NG: "全"})

# 長い表記から順に試す（成香 を 香 より先に）
PIECES_LONGEST: List[Tuple[str, Kind]] = [
    ("成香", Kind.NY), ("成桂", Kind.NK), ("成銀", Kind.NG),
    ("歩", Kind.FU), ("香", Kind.KY), ("桂", Kind.KE), ("銀", Kind.GI), ("金", Kind.KI),
    ("角", Kind.KA), ("飛", Kind.HI), ("玉", Kind.OU), ("王", Kind.OU),
    ("と", Kind.TO), ("杏", Kind.NY), ("圭", Kind.NK), ("全", Kind.NG),
    ("馬", Kind.UM), ("龍", Kind.RY), ("竜", Kind.RY),
]

# 持駒の表示順
HAND_ORDER = [Kind.HI, Kind.KA, Kind.KI, Kind.GI, Kind.KE, Kind.KY, Kind.FU]

# Total piece counts in standard shogi
TOTAL_COUNTS: Dict[Kind, int] = {
    Kind.HI: 2, Kind.KA: 2, Kind.KI: 4, Kind.GI: 4, Kind.KE: 4, Kind.KY: 4, Kind.FU: 18, Kind.OU: 2,
}

RELATIVE_JP: Dict[Relative, str] = {
    Relative.L: "左", Relative.C: "直", Relative.R: "右",
    Relative.U: "上", Relative.M: "寄", Relative.D: "引",
    Relative.LU: "左上", Relative.LM: "左寄", Relative.LD: "左引",
    Relative.RU: "右上", Relative.RM: "右寄", Relative.RD: "右引",
    Relative.H: "打",
}

SPECIAL_KIF: Dict[Special, str] = {
    Special.TORYO: "投了",
    Special.CHUDAN: "中断",
    Special.SENNICHITE: "千日手",
    Special.TIME_UP: "切れ負け",
    Special.ILLEGAL_MOVE: "反則負け",
    Special.ILLEGAL_ACTION_BLACK: "反則勝ち",
    Special.ILLEGAL_ACTION_WHITE: "反則勝ち",
    Special.JISHOGI: "持将棋",
    Special.KACHI: "入玉勝ち",
    Special.HIKIWAKE: "引き分け",
    Special.MATTA: "待った",
    Special.TSUMI: "詰み",
    Special.FUZUMI: "不詰",
    Special.ERROR: "エラー",
}

PRESET_JP: Dict[Preset, str] = {
    Preset.HIRATE: "平手",
    Preset.KY: "香落ち",
    Preset.KY_R: "右香落ち",
    Preset.KA: "角落ち",
    Preset.HI: "飛車落ち",
    Preset.HIKY: "飛香落ち",
    Preset.P2: "二枚落ち",
    Preset.P3: "三枚落ち",
    Preset.P4: "四枚落ち",
    Preset.P5: "五枚落ち",
    Preset.P5_L: "左五枚落ち",
    Preset.P6: "六枚落ち",
    Preset.P7_L: "左七枚落ち",
    Preset.P7_R: "右七枚落ち",
    Preset.P8: "八枚落ち",
    Preset.P10: "十枚落ち",
    Preset.OTHER: "その他",
}

# 駒落ち: 平手から取り除く上手(後手)の駒。CSA の PI 行もこの順で書く
_TWO = [((8, 2), Kind.HI), ((2, 2), Kind.KA)]
_FOUR = _TWO + [((9, 1), Kind.KY), ((1, 1), Kind.KY)]
_SIX = _FOUR + [((8, 1), Kind.KE), ((2, 1), Kind.KE)]
_EIGHT = _SIX + [((7, 1), Kind.GI), ((3, 1), Kind.GI)]

PRESET_DROPS: Dict[Preset, List[Tuple[Square, Kind]]] = {
    Preset.HIRATE: [],
    Preset.KY: [((1, 1), Kind.KY)],
    Preset.KY_R: [((9, 1), Kind.KY)],
    Preset.KA: [((2, 2), Kind.KA)],
    Preset.HI: [((8, 2), Kind.HI)],
    Preset.HIKY: [((8, 2), Kind.HI), ((1, 1), Kind.KY)],
    Preset.P2: _TWO,
    Preset.P3: _TWO + [((1, 1), Kind.KY)],
    Preset.P4: _FOUR,
    Preset.P5: _FOUR + [((8, 1), Kind.KE)],
    Preset.P5_L: _FOUR + [((2, 1), Kind.KE)],
    Preset.P6: _SIX,
    Preset.P7_L: _SIX + [((3, 1), Kind.GI)],
    Preset.P7_R: _SIX + [((7, 1), Kind.GI)],
    Preset.P8: _EIGHT,
    Preset.P10: _EIGHT + [((6, 1), Kind.KI), ((4, 1), Kind.KI)],
}

_BACK_RANK = [Kind.KY, Kind.KE, Kind.GI, Kind.KI, Kind.OU, Kind.KI, Kind.GI, Kind.KE, Kind.KY]


def hirate_board() -> Board:
    board = empty_board()
    for i, kind in enumerate(_BACK_RANK):
        f = 9 - i
        board[(f, 1)] = Piece("W", kind)
        board[(f, 9)] = Piece("B", kind)
    for f in range(1, 10):
        board[(f, 3)] = Piece("W", Kind.FU)
        board[(f, 7)] = Piece("B", Kind.FU)
    board[(8, 2)] = Piece("W", Kind.HI)
    board[(2, 2)] = Piece("W", Kind.KA)
    board[(2, 8)] = Piece("B", Kind.HI)
    board[(8, 8)] = Piece("B", Kind.KA)
    return board


def preset_board(preset: Preset) -> Board:
    """駒落ちの初期盤面（毎回新しい dict を返す）"""
    board = hirate_board()
    for sq, _kind in PRESET_DROPS[preset]:
        board[sq] = None
    return board


def preset_side_to_move(preset: Preset) -> str:
    # 駒落ちは上手（後手）から指す
    return "B" if preset == Preset.HIRATE else "W"
