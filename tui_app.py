#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Dict, List, Tuple

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Footer, Static

from constants import FW_DIGITS, HAND_ORDER, KIND_JP, KIND_TO_PYO, RANK_KANJI, SPECIAL_KIF
from errors import ConvertError
from ki2_format import move_to_ki2
from kif_format import to_kif
from models import GameRecord, Step
from position import ShogiPosition, replay
from sfen import position_to_sfen


# ----------------- helpers -----------------

def build_line(moves: List[Step], choices: Dict[int, int]) -> Tuple[List[Step], Dict[int, int]]:
    """
    choices（手数 → 0=そのまま / k=k番目の変化）に従って1本の手順を作る。
    戻り値の2つ目は各手数で選べる候補の数。
    """
    line: List[Step] = [moves[0]]
    options: Dict[int, int] = {}
    steps, i = moves, 1
    while i < len(steps):
        ply = len(line)
        step = steps[i]
        alts = [f for f in step.forks if f]
        options[ply] = 1 + len(alts)
        c = choices.get(ply, 0)
        if 0 < c <= len(alts):
            steps, i = alts[c - 1], 0
            step = steps[0]
        line.append(step)
        if step.move is None:
            break
        i += 1
    return line, options


def _format_hand(pos: ShogiPosition, color: str) -> str:
    """持駒を '飛1 角1 金2 歩3' みたいに整形（0枚は省略）"""
    hand = pos.hands.get(color, {})
    parts = [f"{KIND_JP[k]}{hand[k]}" for k in HAND_ORDER if hand.get(k, 0) > 0]
    return " ".join(parts) if parts else "なし"


def board_text(pos: ShogiPosition) -> Text:
    """盤面と持駒（直前の着手先は reverse）。show コマンドと共用"""
    last = pos.last_move()
    hot = last.to_sq if last is not None else None

    t = Text()
    t.append(f"△持駒: {_format_hand(pos, 'W')}\n")

    t.append(" ")
    for f in range(9, 0, -1):
        t.append(f" {FW_DIGITS[f]}")
    t.append("\n")

    for r in range(1, 10):
        t.append(" ")
        for f in range(9, 0, -1):
            p = pos.board.get((f, r))
            cell = " ・" if p is None else ("v" if p.color == "W" else " ") + KIND_TO_PYO[p.kind]
            if (f, r) == hot:
                t.append_text(Text(cell, style="reverse"))
            else:
                t.append(cell)
        t.append(f" {RANK_KANJI[r]}\n")

    t.append(f"▲持駒: {_format_hand(pos, 'B')}\n")
    t.append("手番: " + ("先手" if pos.side_to_move == "B" else "後手"))
    return t


def step_label(step: Step) -> str:
    if step.move is not None:
        return move_to_ki2(step.move)
    if step.special is not None:
        return SPECIAL_KIF[step.special]
    return "開始局面"


# ----------------- UI components -----------------

class MoveScroll(VerticalScroll, can_focus=False):
    """矢印キーはビューア側で使うのでフォーカスを取らない"""


class BoardView(Static):
    """盤面表示（直前の着手先は reverse でハイライト）"""

    def __init__(self, viewer: "KifuViewer"):
        super().__init__()
        self.viewer = viewer

    def render(self) -> Text:
        return board_text(self.viewer.pos)


class MoveList(Static):
    def __init__(self, viewer: "KifuViewer"):
        super().__init__()
        self.viewer = viewer

    def render(self) -> Text:
        v = self.viewer
        t = Text()
        for ply, step in enumerate(v.line):
            mark = "+" if v.options.get(ply, 1) > 1 else " "
            label = f"{ply:4}{mark}{step_label(step)}"
            if ply == v.ply:
                t.append_text(Text(label, style="reverse"))
            else:
                t.append(label)
            t.append("\n")
        return t


class TextViewer(ModalScreen[None]):
    def __init__(self, text: str):
        super().__init__()
        self.text = text

    def compose(self) -> ComposeResult:
        yield VerticalScroll(Static(self.text))

    async def on_key(self, event: Key) -> None:
        if event.key in ("escape", "q"):
            event.stop()
            self.dismiss(None)


class KifuViewer(App):
    CSS = """
    Screen { layout: vertical; }
    #root { height: 1fr; layout: horizontal; }
    #left { width: 38; }
    #right { width: 1fr; }
    #moves { height: 1fr; }
    #info { height: auto; max-height: 10; border-top: solid $accent; }
    """

    BINDINGS = [
        Binding("q", "quit", "終了"),
        Binding("left", "prev", "戻る"),
        Binding("right", "next", "進む"),
        Binding("up", "fork_prev", "変化↑"),
        Binding("down", "fork_next", "変化↓"),
        Binding("home", "first", "初手"),
        Binding("end", "last", "最終手"),
        Binding("k", "show_kif", "KIF"),
    ]

    def __init__(self, record: GameRecord, name: str = "") -> None:
        super().__init__()
        self.record = record
        self.record_name = name
        self.choices: Dict[int, int] = {}
        self.line, self.options = build_line(record.moves, self.choices)
        self.ply = 0
        self.pos = ShogiPosition.from_initial(record.initial)

        self.board_view = BoardView(self)
        self.move_list = MoveList(self)
        self.info = Static(id="info")

    def compose(self) -> ComposeResult:
        with Horizontal(id="root"):
            with Vertical(id="left"):
                yield self.board_view
            with Vertical(id="right"):
                with MoveScroll(id="moves"):
                    yield self.move_list
                yield self.info
        yield Footer()

    def on_mount(self) -> None:
        self._refresh_all()

    # --- state ---
    def _refresh_all(self) -> None:
        self.pos = replay(self.record.initial, self.line[1:self.ply + 1])
        self.title = f"棋譜ビューア  {self.record_name}  [{self.ply}手目]"
        self.board_view.refresh()
        self.move_list.refresh()
        self.info.update(self._info_text())

    def _info_text(self) -> Text:
        t = Text()
        step = self.line[self.ply]
        nxt = self.ply + 1
        n = self.options.get(nxt, 1)
        if n > 1:
            t.append(f"次の手の変化: {self.choices.get(nxt, 0) + 1}/{n}（↑↓で切替）\n")
        for c in step.comments:
            t.append(c + "\n")
        t.append("SFEN: " + position_to_sfen(self.pos, self.ply + 1), style="dim")
        return t

    def _select(self, delta: int) -> None:
        nxt = self.ply + 1
        n = self.options.get(nxt, 1)
        if n <= 1:
            return
        self.choices[nxt] = (self.choices.get(nxt, 0) + delta) % n
        # 先の選択は別の手順のものなので捨てる
        for p in [p for p in self.choices if p > nxt]:
            del self.choices[p]
        self.line, self.options = build_line(self.record.moves, self.choices)
        self._refresh_all()

    # --- actions ---
    def action_prev(self) -> None:
        if self.ply > 0:
            self.ply -= 1
            self._refresh_all()

    def action_next(self) -> None:
        if self.ply < len(self.line) - 1:
            self.ply += 1
            self._refresh_all()

    def action_first(self) -> None:
        self.ply = 0
        self._refresh_all()

    def action_last(self) -> None:
        self.ply = len(self.line) - 1
        self._refresh_all()

    def action_fork_prev(self) -> None:
        self._select(-1)

    def action_fork_next(self) -> None:
        self._select(1)

    def action_show_kif(self) -> None:
        try:
            text = to_kif(self.record)
        except ConvertError as e:
            text = f"[ERR] {e}"
        self.push_screen(TextViewer(text))


def run_viewer(record: GameRecord, name: str = "") -> None:
    KifuViewer(record, name).run()


if __name__ == "__main__":
    import sys

    from paths import load_record

    if len(sys.argv) != 2:
        print("usage: tui_app.py <kifu file>")
        sys.exit(2)
    run_viewer(load_record(sys.argv[1]), sys.argv[1])
