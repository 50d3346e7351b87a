# tests/test_tui_app.py
import asyncio

from conftest import read_data
from kif_parser import parse_kif_str
from ki2_parser import parse_ki2_str
from position import ShogiPosition
from tui_app import KifuViewer, board_text, build_line, step_label


def test_build_line_follows_choices():
    record = parse_kif_str(read_data("scenario3.kifu"))
    line, options = build_line(record.moves, {})
    assert len(line) == 13
    assert options[5] == 2
    assert options[10] == 2
    assert options[6] == 1

    line, options = build_line(record.moves, {5: 1, 9: 1})
    # 5手目から変化、さらに9手目で入れ子の変化
    assert len(line) == 16
    assert line[5].move.from_sq == (8, 8)
    assert line[9].move.from_sq == (1, 7)
    assert line[15].move.from_sq == (6, 8)


def test_same_ply_siblings_are_selectable():
    text = "▲７六歩 △３四歩\n\n変化：2手\n△８四歩\n\n変化：2手\n△４二飛\n"
    record = parse_ki2_str(text)
    _, options = build_line(record.moves, {})
    assert options[2] == 3
    line, _ = build_line(record.moves, {2: 2})
    assert line[2].move.to_sq == (4, 2)


def test_board_text_marks_side_and_hands():
    t = board_text(ShogiPosition.startpos())
    assert "手番: 先手" in t.plain
    assert "▲持駒: なし" in t.plain
    assert "v玉" in t.plain


def test_step_label():
    record = parse_kif_str(read_data("timed.kifu"))
    assert step_label(record.moves[0]) == "開始局面"
    assert step_label(record.moves[1]) == "▲７六歩"
    assert step_label(record.moves[6]) == "投了"


def test_viewer_keys():
    record = parse_kif_str(read_data("scenario3.kifu"))

    async def run() -> None:
        app = KifuViewer(record, "scenario3")
        async with app.run_test() as pilot:
            await pilot.press("right", "right")
            assert app.ply == 2
            await pilot.press("end")
            assert app.ply == 12
            await pilot.press("home", "right", "right", "right", "right")
            assert app.ply == 4
            # 5手目の変化へ切り替え
            await pilot.press("down", "end")
            assert app.ply == 12
            assert app.pos.last_move().to_sq == (7, 4)
            await pilot.press("left")
            assert app.ply == 11

    asyncio.run(run())
