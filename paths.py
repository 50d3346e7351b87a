#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
paths.py

棋譜ファイルの読み書きと出力フォルダ（OUTPUT）の解決。
拡張子で形式と文字コードを決める。
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from loguru import logger

from models import GameRecord
from errors import ConvertError
import jkf
from csa_format import to_csa
from csa_parser import parse_csa_str
from ki2_format import to_ki2
from ki2_parser import parse_ki2_str
from kif_format import to_kif
from kif_parser import parse_kif_str
from normalizer import normalize
from sfen import record_to_usi


# 拡張子 → (形式, 文字コード)
FORMAT_BY_SUFFIX = {
    ".kif": ("kif", "cp932"),
    ".kifu": ("kif", "utf-8"),
    ".ki2": ("ki2", "cp932"),
    ".ki2u": ("ki2", "utf-8"),
    ".csa": ("csa", "utf-8"),
    ".jkf": ("jkf", "utf-8"),
    ".json": ("jkf", "utf-8"),
}

# 出力形式 → (拡張子, 文字コード)
OUTPUT_SUFFIX = {
    "kif": (".kif", "cp932"),
    "ki2": (".ki2", "cp932"),
    "csa": (".csa", "utf-8"),
    "jkf": (".jkf", "utf-8"),
    "usi": (".usi", "utf-8"),
}

PathLike = Union[str, Path]


def _base_dir() -> Path:
    # このモジュール（paths.py）のあるディレクトリを基準にする
    return Path(__file__).resolve().parent


def _output_dir(source: Optional[PathLike] = None) -> Path:
    """source があればその隣、無ければこのツールの隣の OUTPUT/"""
    if source is None:
        return _base_dir() / "OUTPUT"
    p = Path(source)
    return (p if p.is_dir() else p.parent) / "OUTPUT"


def _ensure_output_dir(source: Optional[PathLike] = None, override: Optional[PathLike] = None) -> Path:
    out = Path(override) if override is not None else _output_dir(source)
    out.mkdir(parents=True, exist_ok=True)
    return out


def detect_format(path: PathLike) -> str:
    suffix = Path(path).suffix.lower()
    if suffix not in FORMAT_BY_SUFFIX:
        raise ConvertError(f"未対応の拡張子です: {suffix or '(なし)'}")
    return FORMAT_BY_SUFFIX[suffix][0]


def read_kifu_text(path: PathLike) -> str:
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix not in FORMAT_BY_SUFFIX:
        raise ConvertError(f"未対応の拡張子です: {suffix or '(なし)'}")
    encoding = FORMAT_BY_SUFFIX[suffix][1]
    raw = p.read_bytes()
    if suffix == ".csa":
        # CSA は UTF-8 が基本だが、古いファイルは Shift_JIS のことがある
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("{}: UTF-8 で読めないので cp932 で読みます", p.name)
            encoding = "cp932"
    try:
        return raw.decode(encoding)
    except UnicodeDecodeError as e:
        raise ConvertError(f"{p.name} を {encoding} で読めません") from e


def write_kifu_text(path: PathLike, text: str, encoding: Optional[str] = None) -> Path:
    p = Path(path)
    if encoding is None:
        encoding = FORMAT_BY_SUFFIX.get(p.suffix.lower(), ("", "utf-8"))[1]
    p.write_bytes(text.encode(encoding, errors="replace"))
    return p


def parse_text(text: str, fmt: str) -> GameRecord:
    """形式名で parse_*_str を選ぶ（正規化まで）"""
    if fmt == "kif":
        return parse_kif_str(text)
    if fmt == "ki2":
        return parse_ki2_str(text)
    if fmt == "csa":
        return parse_csa_str(text)
    if fmt == "jkf":
        return normalize(jkf.loads(text))
    raise ConvertError(f"未対応の形式です: {fmt}")


def render_text(record: GameRecord, target: str) -> str:
    if target == "kif":
        return to_kif(record)
    if target == "ki2":
        return to_ki2(record)
    if target == "csa":
        return to_csa(record)
    if target == "jkf":
        return jkf.dumps(record) + "\n"
    if target == "usi":
        return record_to_usi(record) + "\n"
    raise ConvertError(f"未対応の出力形式です: {target}")


def load_record(path: PathLike) -> GameRecord:
    """拡張子で形式を決めて読み込み、正規化した棋譜を返す"""
    fmt = detect_format(path)
    logger.debug("load {} as {}", path, fmt)
    return parse_text(read_kifu_text(path), fmt)
