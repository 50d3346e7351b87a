# tests/test_batch_runner.py
from pathlib import Path

import pytest

from batch_runner import batch_convert_file, batch_convert_path
from conftest import read_data
from errors import ConvertError
from helpers import format_total_time
from models import ConvertOptions


def _write_kif(path: Path, text: str) -> Path:
    # .kif は Shift_JIS (cp932) で置く
    path.write_bytes(text.encode("cp932"))
    return path


def test_format_total_time_basic():
    assert format_total_time(0) == "00:00:00"
    assert format_total_time(9) == "00:00:09"
    assert format_total_time(75) == "00:01:15"
    assert format_total_time(3671) == "01:01:11"


def test_convert_one_file_to_output_dir(tmp_path):
    src = _write_kif(tmp_path / "game.kif", read_data("timed.kifu"))
    written = batch_convert_file(str(src), ConvertOptions(target="csa"))
    assert written == [str(tmp_path / "OUTPUT" / "game.csa")]
    text = (tmp_path / "OUTPUT" / "game.csa").read_text(encoding="utf-8")
    assert "+7776FU" in text


def test_existing_output_gets_numbered_name(tmp_path):
    src = _write_kif(tmp_path / "game.kif", read_data("timed.kifu"))
    batch_convert_file(str(src), ConvertOptions(target="kif"))
    written = batch_convert_file(str(src), ConvertOptions(target="kif"))
    assert Path(written[0]).name == "game_002.kif"

    written = batch_convert_file(str(src), ConvertOptions(target="kif", overwrite=True))
    assert Path(written[0]).name == "game.kif"


def test_kif_output_is_cp932(tmp_path):
    src = _write_kif(tmp_path / "game.kif", read_data("timed.kifu"))
    out = tmp_path / "out"
    written = batch_convert_file(str(src), ConvertOptions(target="kif", output_dir=str(out)))
    raw = Path(written[0]).read_bytes()
    assert "７六歩(77)" in raw.decode("cp932")


def test_directory_dedup_and_skip_broken(tmp_path):
    _write_kif(tmp_path / "a.kif", read_data("timed.kifu"))
    # 同じ棋譜（出力が同じになる）
    (tmp_path / "b.kifu").write_text(read_data("timed.kifu"), encoding="utf-8")
    (tmp_path / "c.csa").write_text(read_data("sample.csa"), encoding="utf-8")
    _write_kif(tmp_path / "broken.kif", "   1 ７六金\n")
    (tmp_path / "memo.txt").write_text("not a kifu", encoding="utf-8")

    written = batch_convert_path(str(tmp_path), ConvertOptions(target="csa"))
    names = sorted(Path(w).name for w in written)
    assert names == ["a.csa", "c.csa"]


def test_single_file_path(tmp_path):
    src = tmp_path / "sample.csa"
    src.write_text(read_data("sample.csa"), encoding="utf-8")
    written = batch_convert_path(str(src), ConvertOptions(target="jkf"))
    assert [Path(w).name for w in written] == ["sample.jkf"]


def test_unknown_target(tmp_path):
    src = _write_kif(tmp_path / "game.kif", read_data("timed.kifu"))
    with pytest.raises(ConvertError):
        batch_convert_file(str(src), ConvertOptions(target="pdf"))
