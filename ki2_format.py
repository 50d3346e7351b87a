#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import List

from models import GameRecord, MoveRecord, Special, Step, opponent
from constants import KIND_JP, RELATIVE_JP, SPECIAL_KIF
from helpers import sq_to_kif
from kakinoki import FORK_HEADER, comment_lines, first_mover, header_lines, initial_lines, iter_fork_blocks


_SIDE_JP = {"B": "先手", "W": "後手"}


def move_to_ki2(mv: MoveRecord) -> str:
    """'▲７六歩' / '△同銀' / '▲５二金右' / '▲２二角成'"""
    mark = "▲" if mv.color == "B" else "△"
    dst = "同" if mv.same else sq_to_kif(mv.to_sq)
    out = mark + dst + KIND_JP[mv.piece]
    if mv.relative is not None:
        out += RELATIVE_JP[mv.relative]
    if mv.promote is True:
        out += "成"
    elif mv.promote is False:
        out += "不成"
    return out


def summary_line(special: Special, moves_played: int, to_move: str) -> str:
    """まで○手で… の一行。to_move は終局時の手番"""
    winner = _SIDE_JP[opponent(to_move)]
    loser = _SIDE_JP[to_move]
    if special == Special.TORYO:
        tail = f"{winner}の勝ち"
    elif special == Special.TIME_UP:
        tail = f"時間切れにより{winner}の勝ち"
    elif special == Special.ILLEGAL_MOVE:
        tail = f"{loser}の反則負け"
    elif special == Special.KACHI:
        tail = f"{loser}の入玉勝ち"
    elif special == Special.ILLEGAL_ACTION_BLACK:
        tail = "先手の反則行為により後手の勝ち"
    elif special == Special.ILLEGAL_ACTION_WHITE:
        tail = "後手の反則行為により先手の勝ち"
    else:
        tail = SPECIAL_KIF[special]
    return f"まで{moves_played}手で{tail}"


def _block_lines(steps: List[Step], first_ply: int, first: str) -> List[str]:
    lines: List[str] = []
    tokens: List[str] = []
    for k, step in enumerate(steps):
        ply = first_ply + k
        if step.move is None:
            if tokens:
                lines.append(" ".join(tokens))
                tokens = []
            if step.special is not None:
                # 指し手は交互なので手数の偶奇で手番が決まる
                to_move = first if ply % 2 == 1 else opponent(first)
                lines.append(summary_line(step.special, ply - 1, to_move))
            lines += comment_lines(step.comments)
            break
        tokens.append(move_to_ki2(step.move))
        if step.comments:
            lines.append(" ".join(tokens))
            tokens = []
            lines += comment_lines(step.comments)
    if tokens:
        lines.append(" ".join(tokens))
    return lines


def to_ki2(record: GameRecord) -> str:
    first = first_mover(record.initial)
    lines: List[str] = []
    lines += header_lines(record.header)
    lines += initial_lines(record.initial, omit_hirate=True)
    lines += comment_lines(record.moves[0].comments)
    lines += _block_lines(record.moves[1:], 1, first)

    for ply, fork in iter_fork_blocks(record.moves, 0):
        lines.append("")
        lines.append(f"{FORK_HEADER}{ply}手")
        lines += _block_lines(fork, ply, first)
    return "\n".join(lines) + "\n"
