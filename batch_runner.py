from __future__ import annotations
from typing import Dict, List, Optional
import pathlib

from loguru import logger

from paths import FORMAT_BY_SUFFIX, OUTPUT_SUFFIX, _ensure_output_dir, load_record, render_text
from helpers import _write_text_unique
from models import ConvertOptions
from errors import ConvertError, KifuError


def _basename_no_ext(p: str) -> str:
    return pathlib.Path(p).stem


def _free_name(outdir: pathlib.Path, base: str, suffix: str, overwrite: bool) -> str:
    """既存ファイルは上書きせず base_002 … を使う"""
    name = f"{base}{suffix}"
    if overwrite or not (outdir / name).exists():
        return name
    j = 2
    while (outdir / f"{base}_{j:03d}{suffix}").exists():
        j += 1
    return f"{base}_{j:03d}{suffix}"


def batch_convert_file(path: str, options: Optional[ConvertOptions] = None,
                       seen: Optional[Dict[str, str]] = None) -> List[str]:
    """
    Convert one kifu file into options.target.
    - The input format comes from the extension (.kif/.ki2/.csa/.jkf ...).
    - Output goes to options.output_dir, or OUTPUT/ next to the source.
    - If seen is given, identical outputs are written only once.
    Returns written file paths.
    """
    options = options or ConvertOptions()
    if options.target not in OUTPUT_SUFFIX:
        raise ConvertError(f"未対応の出力形式です: {options.target}")
    suffix, encoding = OUTPUT_SUFFIX[options.target]

    record = load_record(path)
    text = render_text(record, options.target)

    outdir = _ensure_output_dir(path, options.output_dir)
    base = _basename_no_ext(pathlib.Path(path).name)
    name = _free_name(outdir, base, suffix, options.overwrite)
    written = _write_text_unique(outdir, name, text, encoding, seen)
    if written is None:
        logger.info("[dedup] {}: 同じ内容を出力済みなので省略", path)
        return []
    logger.info("[batch] {} -> {}", path, written)
    return [written]


def batch_convert_path(path: str, options: Optional[ConvertOptions] = None) -> List[str]:
    """
    Convert a folder or one file.
      batch <dir>   : every kifu file directly under <dir>
      batch <file>
    A file that fails to load is logged and skipped.
    """
    options = options or ConvertOptions()
    p = pathlib.Path(path)
    if p.is_dir():
        sources = sorted(q for q in p.iterdir() if q.is_file() and q.suffix.lower() in FORMAT_BY_SUFFIX)
    else:
        sources = [p]

    written_all: List[str] = []
    seen: Dict[str, str] = {}
    failed = 0
    for src in sources:
        try:
            written_all.extend(batch_convert_file(str(src), options, seen))
        except KifuError as e:
            failed += 1
            logger.warning("[batch] {}: {}", src, e)
    logger.info("[batch] {} 件中 {} 件を出力（失敗 {} 件）", len(sources), len(written_all), failed)
    return written_all
