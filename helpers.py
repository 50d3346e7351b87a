#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import hashlib
import unicodedata
from pathlib import Path
from typing import Dict, Optional

from constants import FW_DIGITS, HAND_ORDER, KIND_JP, RANK_KANJI
from models import Kind, Square


def format_total_time(total_sec: int) -> str:
    """秒数を HH:MM:SS に整形（KIFの消費時間表示用）"""
    if total_sec < 0:
        total_sec = 0
    h = total_sec // 3600
    m = (total_sec % 3600) // 60
    s = total_sec % 60
    return f"{h:02d}:{m:02d}:{s:02d}"


def format_kif_time(now_sec: int, total_sec: int) -> str:
    # ( 0:16/00:01:05)
    m, s = divmod(max(now_sec, 0), 60)
    return f"({m:2d}:{s:02d}/{format_total_time(total_sec)})"


def sq_to_kif(sq: Square) -> str:
    file_, rank = sq
    return f"{FW_DIGITS[file_]}{RANK_KANJI[rank]}"


def sq_to_paren(sq: Square) -> str:
    return f"({sq[0]}{sq[1]})"


def inv_count_kanji(n: int) -> str:
    inv = {
        1:"",2:"二",3:"三",4:"四",5:"五",6:"六",7:"七",8:"八",9:"九",
        10:"十",11:"十一",12:"十二",13:"十三",14:"十四",15:"十五",16:"十六",17:"十七",18:"十八"
    }
    return inv.get(n, str(n))


def hand_to_kif(hand: Dict[Kind, int]) -> str:
    """'飛二　角　歩三　' / 'なし'"""
    parts = []
    for k in HAND_ORDER:
        n = hand.get(k, 0)
        if n > 0:
            parts.append(KIND_JP[k] + inv_count_kanji(n) + "　")
    return "".join(parts) if parts else "なし"


def display_width(s: str) -> int:
    """全角を2として数えた表示幅"""
    return sum(2 if unicodedata.east_asian_width(ch) in ("F", "W") else 1 for ch in s)


def pad_display(s: str, width: int) -> str:
    return s + " " * max(0, width - display_width(s))


def _dedup_key(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def _write_text_unique(
    outdir: Path,
    filename: str,
    text: str,
    encoding: str,
    seen: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """同一内容を2度書かない。書いたらパス、スキップしたら None"""
    key = _dedup_key(text)
    if seen is not None and key in seen:
        return None
    p = outdir / filename
    p.write_bytes(text.encode(encoding, errors="replace"))
    if seen is not None:
        seen[key] = str(p)
    return str(p)
