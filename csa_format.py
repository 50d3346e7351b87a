#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import re
from typing import List, Optional

from models import GameRecord, HAND_KINDS, Initial, MoveRecord, Preset, Step
from constants import HAND_ORDER, PRESET_DROPS
from csa_parser import CSA_HEADER_KEYS


_KEY_BY_NAME = {name: key for key, name in CSA_HEADER_KEYS.items()}
_ASCII_KEY = re.compile(r"^[A-Z][A-Z0-9_]*$")


def _sign(color: str) -> str:
    return "+" if color == "B" else "-"


def move_to_csa(mv: MoveRecord) -> str:
    """'+7776FU' / '-0055KA'（駒種は移動後のもの）"""
    frm = f"{mv.from_sq[0]}{mv.from_sq[1]}" if mv.from_sq is not None else "00"
    return f"{_sign(mv.color)}{frm}{mv.to_sq[0]}{mv.to_sq[1]}{mv.post_kind().value}"


def _header_lines(header: dict) -> List[str]:
    lines = ["V2.2"]
    if "先手" in header:
        lines.append("N+" + header["先手"])
    elif "下手" in header:
        lines.append("N+" + header["下手"])
    if "後手" in header:
        lines.append("N-" + header["後手"])
    elif "上手" in header:
        lines.append("N-" + header["上手"])
    for k, v in header.items():
        if k in _KEY_BY_NAME:
            lines.append(f"${_KEY_BY_NAME[k]}:{v}")
        elif _ASCII_KEY.match(k):
            lines.append(f"${k}:{v}")
    return lines


def _initial_lines(initial: Optional[Initial]) -> List[str]:
    if initial is None:
        return ["PI", "+"]
    if initial.data is None:
        drops = "".join(f"{sq[0]}{sq[1]}{kind.value}" for sq, kind in PRESET_DROPS[initial.preset])
        return ["PI" + drops, "+" if initial.preset == Preset.HIRATE else "-"]

    data = initial.data
    lines: List[str] = []
    for r in range(1, 10):
        row = ""
        for f in range(9, 0, -1):
            p = data.board.get((f, r))
            row += " * " if p is None else _sign(p.color) + p.kind.value
        lines.append(f"P{r}{row}")
    for color in ("B", "W"):
        hand = data.hands.get(color, {})
        pieces = "".join(f"00{k.value}" * hand.get(k, 0) for k in HAND_ORDER if k in HAND_KINDS)
        if pieces:
            lines.append(f"P{_sign(color)}{pieces}")
    lines.append(_sign(data.color))
    return lines


def _step_lines(step: Step) -> List[str]:
    if step.move is not None:
        lines = [move_to_csa(step.move)]
    elif step.special is not None:
        lines = ["%" + step.special.value]
    else:
        return []
    if step.time is not None:
        lines.append(f"T{step.time.now}")
    return lines


def to_csa(record: GameRecord) -> str:
    """CSA V2.2。コメントと変化は書かない"""
    lines = _header_lines(record.header)
    lines += _initial_lines(record.initial)
    for step in record.moves[1:]:
        lines += _step_lines(step)
        if step.move is None:
            break
    return "\n".join(lines) + "\n"
