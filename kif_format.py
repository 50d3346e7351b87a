#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import List

from models import GameRecord, MoveRecord, Special, Step, opponent
from constants import KIND_JP, SPECIAL_KIF
from errors import ConvertError
from helpers import format_kif_time, pad_display, sq_to_kif, sq_to_paren
from kakinoki import FORK_HEADER, comment_lines, first_mover, header_lines, initial_lines, iter_fork_blocks


KIF_MOVES_HEADER = "手数----指手---------消費時間--"


def move_to_kif(mv: MoveRecord) -> str:
    """'７六歩(77)' / '同　角成(88)' / '５五角打'"""
    dst = "同　" if mv.same else sq_to_kif(mv.to_sq)
    name = KIND_JP[mv.piece] + ("成" if mv.promote else "")
    origin = sq_to_paren(mv.from_sq) if mv.from_sq is not None else "打"
    return f"{dst}{name}{origin}"


def _special_to_kif(special: Special, ply: int, first: str) -> str:
    # 反則勝ち は直前に指した側の反則しか表せない
    fouler = {Special.ILLEGAL_ACTION_BLACK: "B", Special.ILLEGAL_ACTION_WHITE: "W"}.get(special)
    if fouler is not None:
        last = first if (ply - 1) % 2 == 1 else opponent(first)
        if fouler != last:
            raise ConvertError(f"{ply}手目: 手番側の反則行為は KIF で書けません")
    return SPECIAL_KIF[special]


def _step_lines(step: Step, ply: int, first: str) -> List[str]:
    if step.move is not None:
        body = move_to_kif(step.move)
    elif step.special is not None:
        body = _special_to_kif(step.special, ply, first)
    else:
        body = SPECIAL_KIF[Special.CHUDAN]
    line = f"{ply:4} {body}"
    if step.time is not None:
        line = f"{ply:4} {pad_display(body, 13)}{format_kif_time(step.time.now, step.time.total)}"
    return [line] + comment_lines(step.comments)


def _block_lines(steps: List[Step], first_ply: int, first: str) -> List[str]:
    lines: List[str] = []
    for k, step in enumerate(steps):
        lines += _step_lines(step, first_ply + k, first)
    return lines


def to_kif(record: GameRecord) -> str:
    first = first_mover(record.initial)
    lines: List[str] = []
    lines += header_lines(record.header)
    lines += initial_lines(record.initial, omit_hirate=False)
    lines.append(KIF_MOVES_HEADER)
    lines += comment_lines(record.moves[0].comments)
    if len(record.moves) == 1:
        lines.append(f"{1:4} {SPECIAL_KIF[Special.CHUDAN]}")
    lines += _block_lines(record.moves[1:], 1, first)

    for ply, fork in iter_fork_blocks(record.moves, 0):
        lines.append("")
        lines.append(f"{FORK_HEADER}{ply}手")
        lines += _block_lines(fork, ply, first)
    return "\n".join(lines) + "\n"
