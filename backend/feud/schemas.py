"""Inbound payload models.

Socket payloads arrive as loosely shaped dicts; each command is validated
here before it reaches the state machine. Field names are snake_case in
Python and camelCase on the wire.
"""
from typing import List, Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from feud.errors import ValidationError
from feud.models import (
    DEFAULT_TEAM1_NAME,
    DEFAULT_TEAM2_NAME,
    DEFAULT_TOTAL_ROUNDS,
    MAX_ROUNDS,
    MIN_ROUNDS,
    NAVIGABLE_SCREENS,
    Answer,
    Question,
)


class Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RoomJoin(Payload):
    room_code: str = Field(min_length=1)

    @field_validator('room_code')
    @classmethod
    def _upper(cls, v):
        return v.strip().upper()


class DisplayJoin(Payload):
    room_code: Optional[str] = None


class HostAuth(RoomJoin):
    password: str = ''


class PlayerJoin(RoomJoin):
    player_name: str

    @field_validator('player_name')
    @classmethod
    def _name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Please enter your name')
        return v[:32]


class StartGame(Payload):
    team1_name: str = DEFAULT_TEAM1_NAME
    team2_name: str = DEFAULT_TEAM2_NAME
    total_rounds: int = Field(DEFAULT_TOTAL_ROUNDS, ge=MIN_ROUNDS, le=MAX_ROUNDS)

    @field_validator('team1_name', 'team2_name')
    @classmethod
    def _team(cls, v):
        return v.strip().upper()


class AnswerIn(Payload):
    text: str = Field(min_length=1)
    points: int = Field(gt=0)


class QuestionIn(Payload):
    question: str = Field(min_length=1)
    answers: List[AnswerIn] = Field(min_length=1)

    def to_question(self) -> Question:
        return Question(self.question, [Answer(a.text, a.points) for a in self.answers])


class NewQuestion(Payload):
    question: Optional[QuestionIn] = None
    increment_round: bool = False
    question_index: Optional[int] = Field(None, ge=0)


class RevealAnswer(Payload):
    index: int = Field(ge=0)


class AwardPoints(Payload):
    team: int = Field(ge=1, le=2)
    points: int = Field(ge=0)


class CorrectGuess(Payload):
    answer: str
    points: int = 0


class EndRound(AwardPoints):
    correct_guesses: Optional[List[CorrectGuess]] = None


class CheckAnswer(Payload):
    player_answer: str

    @field_validator('player_answer')
    @classmethod
    def _answer(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Please enter an answer')
        return v


class Navigate(Payload):
    screen: str

    @field_validator('screen')
    @classmethod
    def _screen(cls, v):
        if v not in NAVIGABLE_SCREENS:
            raise ValueError(f'Unknown screen {v!r}')
        return v


class TimerSet(Payload):
    seconds: Optional[int] = Field(None, ge=0, le=3600)


class TimerUpdate(Payload):
    seconds: int = Field(ge=0, le=3600)


class AssignTeam(Payload):
    player_id: str
    team: int = Field(ge=1, le=2)


class SetTurn(Payload):
    player_id: str


class CheckAnswerRequest(Payload):
    """Body of the stateless HTTP answer check."""
    question: str = Field(min_length=1)
    answers: List[str] = Field(min_length=1)
    player_answer: str = Field(min_length=1)


class Verdict(Payload):
    """Judge response, as returned by the oracle."""
    match: bool = False
    matched_answer: Optional[str] = ''
    confidence: Optional[str] = None
    reason: Optional[str] = None

    def to_wire(self):
        return self.model_dump(by_alias=True)


def parse(model, data):
    """Validate ``data`` against ``model`` or raise :class:`ValidationError`."""
    try:
        return model.model_validate(data if data is not None else {})
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        where = '.'.join(str(p) for p in first.get('loc', ()))
        msg = first.get('msg', 'Invalid value')
        if msg.startswith('Value error, '):
            msg = msg[len('Value error, '):]
        raise ValidationError(f"{where}: {msg}" if where else msg) from exc
