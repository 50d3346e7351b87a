#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
jkf.py

GameRecord と JSON 棋譜形式（JKF）の相互変換。
盤面は board[x-1][y-1]、手番は 0=先手 / 1=後手。
JSON の形は pydantic のモデルで検査する。
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from models import (
    GameRecord,
    HAND_KINDS,
    Hands,
    Initial,
    Kind,
    MoveRecord,
    MoveTime,
    Piece,
    Preset,
    Relative,
    Special,
    StateData,
    Step,
    empty_board,
    empty_hands,
)
from errors import ConvertError


_COLOR_TO_JKF = {"B": 0, "W": 1}
_COLOR_FROM_JKF = {0: "B", 1: "W"}

ColorNum = Annotated[int, Field(strict=True, ge=0, le=1)]
Coord = Annotated[int, Field(strict=True, ge=1, le=9)]
Count = Annotated[int, Field(strict=True, ge=0, le=18)]
TimeNum = Annotated[int, Field(strict=True, ge=0, le=10 ** 6)]


# ----------------- JSON models -----------------

class PlaceModel(BaseModel):
    x: Coord
    y: Coord


class TimeFormatModel(BaseModel):
    h: Optional[TimeNum] = None
    m: TimeNum
    s: TimeNum


class TimeModel(BaseModel):
    now: TimeFormatModel
    total: TimeFormatModel


class MoveModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    color: ColorNum
    from_: Optional[PlaceModel] = Field(default=None, alias="from")
    to: Optional[PlaceModel] = None
    piece: Kind
    same: Optional[bool] = None
    promote: Optional[bool] = None
    capture: Optional[Kind] = None
    relative: Optional[Relative] = None

    @model_validator(mode="after")
    def _to_or_same(self) -> "MoveModel":
        if self.to is None and not self.same:
            raise ValueError("to が無い指し手は same が必要です")
        return self


class StepModel(BaseModel):
    comments: Optional[List[str]] = None
    move: Optional[MoveModel] = None
    time: Optional[TimeModel] = None
    special: Optional[Special] = None
    forks: Optional[List[List[StepModel]]] = None


class CellModel(BaseModel):
    color: Optional[ColorNum] = None
    kind: Optional[Kind] = None

    @model_validator(mode="after")
    def _both_or_empty(self) -> "CellModel":
        if (self.color is None) != (self.kind is None):
            raise ValueError("駒は color と kind の両方が必要です")
        return self


Column = Annotated[List[CellModel], Field(min_length=9, max_length=9)]


class StateModel(BaseModel):
    color: ColorNum
    board: Annotated[List[Column], Field(min_length=9, max_length=9)]
    hands: Annotated[List[Dict[Kind, Count]], Field(min_length=2, max_length=2)]

    @field_validator("hands")
    @classmethod
    def _hand_kinds(cls, value: List[Dict[Kind, int]]) -> List[Dict[Kind, int]]:
        for hand in value:
            for kind in hand:
                if kind not in HAND_KINDS:
                    raise ValueError(f"持駒にできない駒です: {kind.value}")
        return value


class InitialModel(BaseModel):
    preset: Preset
    data: Optional[StateModel] = None

    @model_validator(mode="after")
    def _other_needs_data(self) -> "InitialModel":
        if self.preset == Preset.OTHER and self.data is None:
            raise ValueError("手合割「その他」には data が必要です")
        return self


class KifuModel(BaseModel):
    header: Dict[str, str] = Field(default_factory=dict)
    initial: Optional[InitialModel] = None
    moves: Annotated[List[StepModel], Field(min_length=1)]


StepModel.model_rebuild()


# ----------------- to JKF -----------------

def _time_to(sec: int, always_h: bool) -> TimeFormatModel:
    h, rest = divmod(max(sec, 0), 3600)
    m, s = divmod(rest, 60)
    return TimeFormatModel(h=h if always_h or h > 0 else None, m=m, s=s)


def _initial_to(initial: Initial) -> InitialModel:
    if initial.data is None:
        return InitialModel(preset=initial.preset)
    data = initial.data
    board = []
    for x in range(1, 10):
        col = []
        for y in range(1, 10):
            p = data.board.get((x, y))
            col.append(CellModel() if p is None else CellModel(color=_COLOR_TO_JKF[p.color], kind=p.kind))
        board.append(col)
    hands = [{k: data.hands.get(c, {}).get(k, 0) for k in HAND_KINDS} for c in ("B", "W")]
    return InitialModel(
        preset=initial.preset,
        data=StateModel(color=_COLOR_TO_JKF[data.color], board=board, hands=hands),
    )


def _move_to(mv: MoveRecord) -> MoveModel:
    if mv.to_sq is None:
        raise ConvertError("移動先の無い指し手は JKF にできません（先に正規化してください）")
    return MoveModel(
        color=_COLOR_TO_JKF[mv.color],
        from_=None if mv.from_sq is None else PlaceModel(x=mv.from_sq[0], y=mv.from_sq[1]),
        to=PlaceModel(x=mv.to_sq[0], y=mv.to_sq[1]),
        piece=mv.piece,
        same=mv.same,
        promote=mv.promote,
        capture=mv.capture,
        relative=mv.relative,
    )


def _step_to(step: Step) -> StepModel:
    out = StepModel(special=step.special)
    if step.move is not None:
        out.move = _move_to(step.move)
    if step.comments:
        out.comments = list(step.comments)
    if step.time is not None:
        out.time = TimeModel(
            now=_time_to(step.time.now, always_h=False),
            total=_time_to(step.time.total, always_h=True),
        )
    if step.forks:
        out.forks = [[_step_to(s) for s in fork] for fork in step.forks]
    return out


def _to_model(record: GameRecord) -> KifuModel:
    return KifuModel(
        header=dict(record.header),
        initial=None if record.initial is None else _initial_to(record.initial),
        moves=[_step_to(s) for s in record.moves],
    )


def record_to_jkf(record: GameRecord) -> Dict[str, Any]:
    return _to_model(record).model_dump(mode="json", by_alias=True, exclude_none=True)


# ----------------- from JKF -----------------

def _place_from(place: PlaceModel):
    return (place.x, place.y)


def _time_from(t: TimeFormatModel) -> int:
    return (t.h or 0) * 3600 + t.m * 60 + t.s


def _hands_from(value: List[Dict[Kind, int]]) -> Hands:
    hands = empty_hands()
    for color, hand in zip(("B", "W"), value):
        for kind, n in hand.items():
            if n > 0:
                hands[color][kind] = n
    return hands


def _initial_from(model: InitialModel) -> Initial:
    if model.data is None:
        return Initial(preset=model.preset)
    board = empty_board()
    for x, col in enumerate(model.data.board, start=1):
        for y, cell in enumerate(col, start=1):
            if cell.kind is not None:
                board[(x, y)] = Piece(_COLOR_FROM_JKF[cell.color], cell.kind)
    data = StateData(
        color=_COLOR_FROM_JKF[model.data.color],
        board=board,
        hands=_hands_from(model.data.hands),
    )
    return Initial(preset=model.preset, data=data)


def _move_from(model: MoveModel) -> MoveRecord:
    return MoveRecord(
        color=_COLOR_FROM_JKF[model.color],
        to_sq=None if model.to is None else _place_from(model.to),
        piece=model.piece,
        from_sq=None if model.from_ is None else _place_from(model.from_),
        same=model.same,
        promote=model.promote,
        capture=model.capture,
        relative=model.relative,
    )


def _step_from(model: StepModel) -> Step:
    step = Step(special=model.special, comments=list(model.comments or []))
    if model.move is not None:
        step.move = _move_from(model.move)
    if model.time is not None:
        step.time = MoveTime(now=_time_from(model.time.now), total=_time_from(model.time.total))
    for fork in model.forks or []:
        step.forks.append([_step_from(s) for s in fork])
    return step


def _from_model(model: KifuModel) -> GameRecord:
    return GameRecord(
        header=dict(model.header),
        initial=None if model.initial is None else _initial_from(model.initial),
        moves=[_step_from(s) for s in model.moves],
    )


def _convert_error(e: ValidationError) -> ConvertError:
    err = e.errors()[0]
    loc = ".".join(str(p) for p in err["loc"]) or "(top)"
    return ConvertError(f"JKF が不正です: {loc}: {err['msg']}")


def record_from_jkf(obj: Any) -> GameRecord:
    try:
        model = KifuModel.model_validate(obj)
    except ValidationError as e:
        raise _convert_error(e) from e
    return _from_model(model)


def dumps(record: GameRecord, indent: Optional[int] = 2) -> str:
    return _to_model(record).model_dump_json(indent=indent, by_alias=True, exclude_none=True)


def loads(text: str) -> GameRecord:
    try:
        model = KifuModel.model_validate_json(text.lstrip("\ufeff"))
    except ValidationError as e:
        raise _convert_error(e) from e
    return _from_model(model)
