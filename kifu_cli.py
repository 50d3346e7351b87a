#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
kifu_cli.py

棋譜変換のコマンドライン入口。
  python kifu_cli.py convert game.kif -t csa
  python kifu_cli.py show game.csa --ply 30
  python kifu_cli.py batch INPUT -t kif
  python kifu_cli.py view game.kif
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from loguru import logger
from rich.console import Console
from rich.table import Table

from batch_runner import batch_convert_path
from errors import KifuError
from help_texts import HELP_MAIN, HELP_MAP
from helpers import format_kif_time
from log_config import setup_logging
from models import ConvertOptions, GameRecord
from paths import OUTPUT_SUFFIX, load_record, render_text, write_kifu_text
from position import replay
from tui_app import board_text, run_viewer, step_label


TARGETS = sorted(OUTPUT_SUFFIX)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kifu", description="棋譜変換ツール（KIF / KI2 / CSA / JKF / USI）")
    parser.add_argument("-v", "--verbose", action="store_true", help="詳細ログ（DEBUG）")
    parser.add_argument("--log-file", default=None, help="ログをファイルにも書く")
    sub = parser.add_subparsers(dest="cmd")

    p = sub.add_parser("convert", help="1ファイルを変換")
    p.add_argument("file")
    p.add_argument("-t", "--to", dest="target", choices=TARGETS, default="kif")
    p.add_argument("-o", "--output", default=None, help="出力ファイル（省略時は標準出力）")

    p = sub.add_parser("show", help="指し手一覧と盤面を表示")
    p.add_argument("file")
    p.add_argument("--ply", type=int, default=None, help="盤面を表示する手数（省略時は最終手）")

    p = sub.add_parser("batch", help="フォルダを一括変換")
    p.add_argument("path")
    p.add_argument("-t", "--to", dest="target", choices=TARGETS, default="kif")
    p.add_argument("-o", "--output-dir", default=None)
    p.add_argument("--overwrite", action="store_true")

    p = sub.add_parser("view", help="盤面ビューア")
    p.add_argument("file")

    p = sub.add_parser("help", help="ヘルプ")
    p.add_argument("topic", nargs="?", default=None)
    return parser


def _cmd_convert(args: argparse.Namespace) -> int:
    record = load_record(args.file)
    text = render_text(record, args.target)
    if args.output:
        out = write_kifu_text(args.output, text, OUTPUT_SUFFIX[args.target][1])
        logger.info("保存しました: {}", out)
    else:
        sys.stdout.write(text)
    return 0


def _moves_table(record: GameRecord) -> Table:
    table = Table(title="本譜")
    table.add_column("手数", justify="right")
    table.add_column("指し手")
    table.add_column("消費時間")
    table.add_column("変化", justify="right")
    table.add_column("コメント")
    for ply, step in enumerate(record.moves):
        if ply == 0 and not step.comments:
            continue
        t = format_kif_time(step.time.now, step.time.total) if step.time is not None else ""
        forks = str(len(step.forks)) if step.forks else ""
        table.add_row(str(ply), step_label(step), t, forks, " / ".join(step.comments))
    return table


def _cmd_show(args: argparse.Namespace) -> int:
    record = load_record(args.file)
    console = Console()
    if record.header:
        for k, v in record.header.items():
            console.print(f"{k}：{v}")
    console.print(_moves_table(record))

    main = record.moves[1:]
    played = len(main) if args.ply is None else max(0, min(args.ply, len(main)))
    pos = replay(record.initial, main[:played])
    console.print(f"\n{played}手目の局面")
    console.print(board_text(pos))
    return 0


def _cmd_batch(args: argparse.Namespace) -> int:
    options = ConvertOptions(target=args.target, output_dir=args.output_dir, overwrite=args.overwrite)
    written = batch_convert_path(args.path, options)
    for w in written:
        print(w)
    return 0


def _cmd_view(args: argparse.Namespace) -> int:
    run_viewer(load_record(args.file), args.file)
    return 0


def _cmd_help(args: argparse.Namespace) -> int:
    if args.topic is None:
        print(HELP_MAIN)
    else:
        topic = args.topic.lower()
        print(HELP_MAP.get(topic, f"[help] topic '{topic}' は未対応です。使えるtopic: {', '.join(HELP_MAP.keys())}"))
    return 0


_COMMANDS = {
    "convert": _cmd_convert,
    "show": _cmd_show,
    "batch": _cmd_batch,
    "view": _cmd_view,
    "help": _cmd_help,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(args.verbose, args.log_file)
    if args.cmd is None:
        print(HELP_MAIN)
        return 0
    try:
        return _COMMANDS[args.cmd](args)
    except (KifuError, OSError) as e:
        target = getattr(args, "file", None) or getattr(args, "path", "")
        print(f"[ERR] {target}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
