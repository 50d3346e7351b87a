#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
errors.py

棋譜の読み込み・正規化・変換で使う例外。
どれも ValueError の派生なので、従来の `except ValueError` でも拾える。
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

Square = Tuple[int, int]


class KifuError(ValueError):
    pass


class ParseError(KifuError):
    """文法エラー。行・列は 1 始まり。"""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        if self.column is None:
            return f"{self.line}行目: {self.message}"
        return f"{self.line}行目 {self.column}文字目: {self.message}"


class NormalizeError(KifuError):
    pass


class NoPreviousMove(NormalizeError):
    def __init__(self) -> None:
        super().__init__("「同」の直前の指し手がありません")


class NoPieceAt(NormalizeError):
    def __init__(self, square: Square):
        self.square = square
        super().__init__(f"移動元 {square[0]}{square[1]} に手番の駒がありません")


class AmbiguousOrigin(NormalizeError):
    def __init__(self, candidates: Sequence[Square]):
        self.candidates: List[Square] = list(candidates)
        sqs = ", ".join(f"{f}{r}" for f, r in self.candidates)
        super().__init__(f"移動元を特定できません（候補: {sqs}）")


class MoveApplicationFailed(NormalizeError):
    def __init__(self, move: object, reason: str):
        self.move = move
        self.reason = reason
        super().__init__(f"指し手を適用できません: {reason}")


class InvalidSquare(NormalizeError):
    def __init__(self, square: object):
        self.square = square
        super().__init__(f"マスが不正です: {square!r}")


class IllegalMove(KifuError):
    pass


class ConvertError(KifuError):
    pass
