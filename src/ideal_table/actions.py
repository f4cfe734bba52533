"""Mutation primitives and their evaluation results.

Actions address members by ``Position`` (group index, member index). Evaluating
an action yields one of three results:

- ``ScoreDiff``: the penalty change, all touched groups still satisfy the constraint
- ``UnsatisfiedScoreDiff``: the penalty change, some touched group violates it
- ``Failed``: the action does not address existing state

Results of the single-group halves of a multi-group action combine with ``+``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .models import Member, Score


class ActionError(Enum):
    INVALID_POSITION = "invalid_position"


@dataclass(frozen=True)
class Position:
    group_index: int
    member_index: int


@dataclass(frozen=True)
class Add:
    member: Member
    group_index: int


@dataclass(frozen=True)
class Remove:
    position: Position


@dataclass(frozen=True)
class Swap:
    first: Position
    second: Position


@dataclass(frozen=True)
class Move:
    source: Position
    target_group: int


Action = Union[Add, Remove, Swap, Move]


@dataclass(frozen=True)
class ScoreDiff:
    score: Score

    def __add__(self, other: "ActionResult") -> "ActionResult":
        if isinstance(other, ScoreDiff):
            return ScoreDiff(self.score + other.score)
        if isinstance(other, UnsatisfiedScoreDiff):
            return UnsatisfiedScoreDiff(self.score + other.score)
        return NotImplemented


@dataclass(frozen=True)
class UnsatisfiedScoreDiff:
    score: Score

    def __add__(self, other: "ActionResult") -> "ActionResult":
        if isinstance(other, (ScoreDiff, UnsatisfiedScoreDiff)):
            return UnsatisfiedScoreDiff(self.score + other.score)
        return NotImplemented


@dataclass(frozen=True)
class Failed:
    errors: tuple[ActionError, ...] = field(default=(ActionError.INVALID_POSITION,))

    def __add__(self, other: "ActionResult") -> "ActionResult":
        if isinstance(other, Failed):
            return Failed(self.errors + other.errors)
        if isinstance(other, (ScoreDiff, UnsatisfiedScoreDiff)):
            return self
        return NotImplemented

    # Failed dominates from either side
    __radd__ = __add__


ActionResult = Union[ScoreDiff, UnsatisfiedScoreDiff, Failed]


def classify(score: Score, satisfied: bool) -> ActionResult:
    """Wrap a score delta according to constraint satisfaction."""
    if satisfied:
        return ScoreDiff(score)
    return UnsatisfiedScoreDiff(score)


def invalid_position() -> Failed:
    return Failed((ActionError.INVALID_POSITION,))
