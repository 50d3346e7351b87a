#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

# ----------------- Help -----------------

HELP_MAIN = """\
============================================================
  棋譜変換ツール（KIF / KI2 / CSA / JKF / USI）
============================================================

【最短の流れ】
  1) 変換:     convert game.kif -t csa
  2) 確認:     show game.csa --ply 30
  3) 一括:     batch INPUT -t kif

【コマンド】
  convert FILE [-t 形式] [-o 出力]  : 1ファイルを変換（省略時は標準出力）
  show FILE [--ply N]              : 指し手一覧と N 手目の盤面を表示
  batch PATH [-t 形式] [-o DIR]    : フォルダ（またはファイル）を一括変換
  view FILE                        : 盤面ビューア（←→で1手ずつ、↑↓で変化を選択）
  help [topic]                     : サブヘルプ（topic: formats / convert / batch / view）

【共通オプション】
  -v / --verbose                   : 詳細ログ（DEBUG）
  --log-file FILE                  : ログをファイルにも書く
============================================================
"""

HELP_FORMATS = """\
[help formats]
入力は拡張子で判定します。

  .kif  / .kifu   : KIF（.kif は cp932、.kifu は UTF-8）
  .ki2  / .ki2u   : KI2（.ki2 は cp932、.ki2u は UTF-8）
  .csa            : CSA（UTF-8。読めなければ cp932）
  .jkf  / .json   : JSON 棋譜形式（UTF-8）

出力形式（-t）:
  kif / ki2 / csa / jkf / usi

注意:
  ・CSA にはコメントと変化は出力されません
  ・KI2 には消費時間は出力されません
  ・usi は本譜のみ（position startpos moves ...）
"""

HELP_CONVERT = """\
[help convert]
1ファイルを読み込み、指し手を補完（移動元・成・同・相対位置）してから書き出します。

使い方:
  convert game.kif -t csa            : 標準出力へ
  convert game.kif -t jkf -o out.jkf : ファイルへ（文字コードは出力形式で決まる）

読めない棋譜は1行のエラーを表示して終了コード 1 を返します。
例: 12行目 5文字目: 駒名が読めません
"""

HELP_BATCH = """\
[help batch]
フォルダ直下の棋譜ファイルをまとめて変換します。

使い方:
  batch INPUT -t kif
  batch INPUT -t csa -o converted
  batch game.ki2 -t kif

ポイント:
  ・出力先を省略すると、入力の隣の OUTPUT/ に書きます
  ・同名ファイルがあれば name_002.kif のように番号を付けます（--overwrite で上書き）
  ・内容が同じ出力は1回だけ書きます
  ・読めないファイルは警告を出して次へ進みます
"""

HELP_VIEW = """\
[help view]
盤面ビューア（textual）

キー:
  → / ←        : 1手進む / 戻る
  ↑ / ↓        : 次の手の変化を選ぶ（一覧の '+' が変化のある手）
  home / end   : 開始局面 / 最終手
  k            : KIF テキストを表示（esc で閉じる）
  q            : 終了
"""

HELP_MAP = {
    "formats": HELP_FORMATS,
    "convert": HELP_CONVERT,
    "batch": HELP_BATCH,
    "view": HELP_VIEW,
}

# 公開する名前
__all__ = [
    "HELP_MAIN",
    "HELP_FORMATS",
    "HELP_CONVERT",
    "HELP_BATCH",
    "HELP_VIEW",
    "HELP_MAP",
]
