from __future__ import annotations
from typing import List, Optional, Tuple
import re

from models import GameRecord, MoveRecord, Relative, Special, Step
from errors import ParseError
from kakinoki import (
    FORK_HEADER,
    comment_of,
    match_kind,
    match_square,
    merge_forks,
    parse_header_section,
)
from normalizer import normalize

# ----------------- KI2 (compact transcript) -----------------
#
# ▲７六歩    △３四歩    ▲２二角成  △同　銀
# ▲４五角打  △５二金右
# まで4手で後手の勝ち

_MARKS = {"▲": "B", "☗": "B", "△": "W", "☖": "W", "▽": "W"}
_FORK_RE = re.compile(r"^変化：\s*(\d+)手")
_SUMMARY_RE = re.compile(r"^まで(\d+)手で(.+)$")

_RELATIVE_BY_GLYPHS = {
    ("左", ""): Relative.L, ("直", ""): Relative.C, ("右", ""): Relative.R,
    ("", "上"): Relative.U, ("", "寄"): Relative.M, ("", "引"): Relative.D,
    ("左", "上"): Relative.LU, ("左", "寄"): Relative.LM, ("左", "引"): Relative.LD,
    ("右", "上"): Relative.RU, ("右", "寄"): Relative.RM, ("右", "引"): Relative.RD,
}

_SIDES_B = ("先手", "下手")
_SIDE = r"(先手|後手|下手|上手)"

# まで○手で… の後ろ（上から順に試す）
_SUMMARY_PATTERNS: List[Tuple[re.Pattern, Optional[Special]]] = [
    (re.compile(_SIDE + r"の反則行為"), None),
    (re.compile(r"時間切れ"), Special.TIME_UP),
    (re.compile(_SIDE + r"の反則負け"), Special.ILLEGAL_MOVE),
    (re.compile(_SIDE + r"の入玉勝ち"), Special.KACHI),
    (re.compile(_SIDE + r"の勝ち"), Special.TORYO),
    (re.compile(r"^不詰"), Special.FUZUMI),
    (re.compile(r"^詰み"), Special.TSUMI),
    (re.compile(r"^中断"), Special.CHUDAN),
    (re.compile(r"^千日手"), Special.SENNICHITE),
    (re.compile(r"^持将棋"), Special.JISHOGI),
    (re.compile(r"^引き分け"), Special.HIKIWAKE),
    (re.compile(r"^待った"), Special.MATTA),
    (re.compile(r"^エラー"), Special.ERROR),
]


def _is_moves_start(line: str) -> bool:
    s = line.lstrip(" 　")
    return (
        (s[:1] in _MARKS)
        or line.startswith(FORK_HEADER)
        or comment_of(line) is not None
        or _SUMMARY_RE.match(line) is not None
    )


def _parse_summary(rest: str, lineno: int) -> Special:
    for pat, special in _SUMMARY_PATTERNS:
        m = pat.search(rest)
        if not m:
            continue
        if special is None:
            return Special.ILLEGAL_ACTION_BLACK if m.group(1) in _SIDES_B else Special.ILLEGAL_ACTION_WHITE
        return special
    raise ParseError(f"終局の表記が読めません: {rest}", lineno, 1)


def _parse_token(line: str, i: int, lineno: int) -> Tuple[MoveRecord, int]:
    """line[i] は ▲/△。読み終えた位置を返す"""
    color = _MARKS[line[i]]
    i += 1
    same = None
    to_sq = None
    if line.startswith("同", i):
        same = True
        i += 1
        if line.startswith("　", i):
            i += 1
    else:
        sq = match_square(line, i)
        if sq is None:
            raise ParseError("移動先が読めません", lineno, i + 1)
        to_sq, i = sq

    km = match_kind(line, i)
    if km is None:
        raise ParseError("駒名が読めません", lineno, i + 1)
    kind, i = km

    side = ""
    motion = ""
    relative = None
    if i < len(line) and line[i] in "左直右":
        side = line[i]
        i += 1
    if i < len(line) and line[i] in "上寄引":
        motion = line[i]
        i += 1
    if side or motion:
        relative = _RELATIVE_BY_GLYPHS.get((side, motion))
        if relative is None:
            raise ParseError(f"相対位置が読めません: {side}{motion}", lineno, i)

    promote = None
    if line.startswith("不成", i):
        promote = False
        i += 2
    elif line.startswith("生", i):
        promote = False
        i += 1
    elif line.startswith("成", i):
        promote = True
        i += 1

    if line.startswith("打", i):
        if relative is not None:
            raise ParseError("打 と相対位置は同時に書けません", lineno, i + 1)
        relative = Relative.H
        i += 1

    mv = MoveRecord(
        color=color,
        to_sq=to_sq,
        piece=kind,
        same=same,
        promote=promote,
        relative=relative,
    )
    return mv, i


def parse_ki2(text: str) -> GameRecord:
    """KI2 テキスト → 未正規化の GameRecord"""
    lines = text.lstrip("\ufeff").splitlines()
    info, i = parse_header_section(lines, _is_moves_start)

    main: List[Step] = [Step()]
    forks: List[Tuple[int, List[Step]]] = []
    block = main
    pending: List[str] = []

    while i < len(lines):
        line = lines[i].rstrip()
        lineno = i + 1
        i += 1
        if not line.strip() or line.startswith("#"):
            continue

        c = comment_of(line)
        if c is not None:
            if block:
                block[-1].comments.append(c)
            else:
                pending.append(c)
            continue

        fm = _FORK_RE.match(line)
        if fm:
            if block is not main and not block:
                raise ParseError("変化に指し手がありません", lineno - 1)
            block = []
            forks.append((int(fm.group(1)), block))
            continue

        sm = _SUMMARY_RE.match(line)
        if sm:
            block.append(Step(special=_parse_summary(sm.group(2), lineno)))
            continue

        pos = 0
        while pos < len(line):
            if line[pos] in " 　":
                pos += 1
                continue
            if line[pos] not in _MARKS:
                raise ParseError("指し手は ▲ か △ で始まります", lineno, pos + 1)
            mv, pos = _parse_token(line, pos, lineno)
            step = Step(move=mv)
            if pending:
                step.comments = pending
                pending = []
            block.append(step)

    if block is not main and not block:
        raise ParseError("変化に指し手がありません", len(lines))

    merge_forks(main, forks)
    return GameRecord(header=info.header, initial=info.initial(), moves=main)


def parse_ki2_str(text: str) -> GameRecord:
    """KI2 テキストを読み、正規化まで済ませる"""
    return normalize(parse_ki2(text))
