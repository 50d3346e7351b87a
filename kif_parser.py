from __future__ import annotations
from typing import List, Optional, Tuple
import re

from models import GameRecord, MoveRecord, MoveTime, Relative, Special, Step, opponent
from errors import ParseError
from kakinoki import (
    FORK_HEADER,
    comment_of,
    first_mover,
    match_kind,
    match_square,
    merge_forks,
    parse_header_section,
)
from normalizer import normalize

# ----------------- KIF (verbose transcript) -----------------
#
#    1 ７六歩(77)   ( 0:16/00:00:16)
#    2 同　角成(88) ( 0:03/00:00:03)
#    3 ５五角打     ( 0:01/00:00:17)

_MOVE_LINE_RE = re.compile(r"^\s*(\d+)[ 　]*")
_FORK_RE = re.compile(r"^変化：\s*(\d+)手")
_FROM_RE = re.compile(r"\(([1-9])([1-9])\)")
_TIME_RE = re.compile(
    r"\(\s*(?:(\d+):)?(\d+):(\d+)\s*/\s*(?:(\d+):)?(\d+):(\d+)\s*\)"
)

_SPECIAL_WORDS: List[Tuple[str, Optional[Special]]] = [
    ("投了", Special.TORYO),
    ("中断", Special.CHUDAN),
    ("千日手", Special.SENNICHITE),
    ("切れ負け", Special.TIME_UP),
    ("反則負け", Special.ILLEGAL_MOVE),
    ("反則勝ち", None),  # 直前に指した側の反則
    ("持将棋", Special.JISHOGI),
    ("入玉勝ち", Special.KACHI),
    ("引き分け", Special.HIKIWAKE),
    ("待った", Special.MATTA),
    ("詰み", Special.TSUMI),
    ("不詰", Special.FUZUMI),
    ("エラー", Special.ERROR),
]


def _is_moves_start(line: str) -> bool:
    return (
        line.lstrip().startswith("手数")
        or line.startswith(FORK_HEADER)
        or comment_of(line) is not None
        or _MOVE_LINE_RE.match(line) is not None
    )


def _seconds(h: Optional[str], m: str, s: str) -> int:
    return int(h or 0) * 3600 + int(m) * 60 + int(s)


def _parse_time(rest: str) -> Optional[MoveTime]:
    m = _TIME_RE.search(rest)
    if not m:
        return None
    return MoveTime(
        now=_seconds(m.group(1), m.group(2), m.group(3)),
        total=_seconds(m.group(4), m.group(5), m.group(6)),
    )


def _mover(first: str, ply: int) -> str:
    return first if ply % 2 == 1 else opponent(first)


def _illegal_action(fouler: str) -> Special:
    return Special.ILLEGAL_ACTION_BLACK if fouler == "B" else Special.ILLEGAL_ACTION_WHITE


def _parse_move_body(body: str, ply: int, first: str, lineno: int, col0: int) -> Step:
    """body は手数の後ろ。first は初手を指す側、col0 は body 先頭の列（1始まり）"""
    for word, special in _SPECIAL_WORDS:
        if body.startswith(word):
            if special is None:
                special = _illegal_action(_mover(first, ply - 1))
            return Step(special=special, time=_parse_time(body[len(word):]))

    same = None
    to_sq = None
    if body.startswith("同"):
        same = True
        i = 1
        while i < len(body) and body[i] in " 　":
            i += 1
    else:
        sq = match_square(body, 0)
        if sq is None:
            raise ParseError("移動先が読めません", lineno, col0)
        to_sq, i = sq

    km = match_kind(body, i)
    if km is None:
        raise ParseError("駒名が読めません", lineno, col0 + i)
    kind, i = km

    promote = None
    if body.startswith("不成", i):
        promote = False
        i += 2
    elif body.startswith("成", i):
        promote = True
        i += 1

    from_sq = None
    relative = None
    if body.startswith("打", i):
        relative = Relative.H
        i += 1
    else:
        fm = _FROM_RE.match(body, i)
        if fm is None:
            raise ParseError("移動元 (xy) または 打 がありません", lineno, col0 + i)
        from_sq = (int(fm.group(1)), int(fm.group(2)))
        i = fm.end()

    mv = MoveRecord(
        color=_mover(first, ply),
        to_sq=to_sq,
        piece=kind,
        from_sq=from_sq,
        same=same,
        promote=promote,
        relative=relative,
    )
    return Step(move=mv, time=_parse_time(body[i:]))


def parse_kif(text: str) -> GameRecord:
    """KIF テキスト → 未正規化の GameRecord"""
    lines = text.lstrip("\ufeff").splitlines()
    info, i = parse_header_section(lines, _is_moves_start)
    initial = info.initial()
    first = first_mover(initial)

    main: List[Step] = [Step()]
    forks: List[Tuple[int, List[Step]]] = []
    block = main
    expected = 1
    pending: List[str] = []

    while i < len(lines):
        line = lines[i]
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
            expected = int(fm.group(1))
            block = []
            forks.append((expected, block))
            continue

        mm = _MOVE_LINE_RE.match(line)
        if mm is None:
            # 手数----指手---- や まで○手で… などは読み飛ばす
            continue
        ply = int(mm.group(1))
        if ply != expected:
            raise ParseError(f"手数が {expected} ではなく {ply} です", lineno, 1)
        step = _parse_move_body(line[mm.end():].rstrip(), ply, first, lineno, mm.end() + 1)
        if pending:
            step.comments = pending + step.comments
            pending = []
        block.append(step)
        expected += 1

    if block is not main and not block:
        raise ParseError("変化に指し手がありません", len(lines))

    merge_forks(main, forks)
    return GameRecord(header=info.header, initial=initial, moves=main)


def parse_kif_str(text: str) -> GameRecord:
    """KIF テキストを読み、正規化まで済ませる"""
    return normalize(parse_kif(text))
