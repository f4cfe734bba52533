"""Core data models for the Ideal Table optimizer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping


Score = float


@dataclass(frozen=True)
class Member:
    """A member with a unique id and a set of tags."""
    id: int
    tags: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        # Accept any iterable of tags, store them frozen
        if not isinstance(self.tags, frozenset):
            object.__setattr__(self, "tags", frozenset(self.tags))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tags": sorted(self.tags)
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Member":
        return cls(
            id=int(data["id"]),
            tags=frozenset(data.get("tags", []))
        )


@dataclass
class Group:
    """An ordered sequence of members. Order is addressing, not ranking."""
    members: list[Member] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "members": [m.to_dict() for m in self.members]
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Group":
        return cls(
            members=[Member.from_dict(m) for m in data.get("members", [])]
        )

    def member_ids(self) -> list[int]:
        return [m.id for m in self.members]


@dataclass
class Table:
    """The full partition of members into groups for one run."""
    groups: list[Group] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "groups": [g.to_dict() for g in self.groups]
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Table":
        return cls(
            groups=[Group.from_dict(g) for g in data.get("groups", [])]
        )

    def get_member_by_id(self, member_id: int) -> Member | None:
        """Get a member by their ID."""
        for group in self.groups:
            for member in group.members:
                if member.id == member_id:
                    return member
        return None


class RelationPenalty:
    """Symmetric pairwise penalty between members, with a default for unseen pairs."""

    def __init__(self, default: Score = 0.0, scores: Mapping[frozenset[int], Score] | None = None):
        self.default = default
        self._scores: dict[frozenset[int], Score] = {}
        for pair, score in (scores or {}).items():
            if len(pair) != 2:
                raise ValueError(f"Relation penalty needs two distinct member ids, got {sorted(pair)}")
            a, b = pair
            self._set_pair(a, b, score)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[int, int, Score]], default: Score = 0.0) -> "RelationPenalty":
        penalty = cls(default)
        for a, b, score in pairs:
            penalty._set_pair(a, b, score)
        return penalty

    def _set_pair(self, a: int, b: int, score: Score) -> None:
        if a == b:
            raise ValueError(f"Relation penalty is undefined for member {a} paired with itself")
        self._scores[frozenset((a, b))] = float(score)

    def get_pair(self, a: int, b: int) -> Score:
        return self._scores.get(frozenset((a, b)), self.default)

    def pairs(self) -> list[tuple[int, int, Score]]:
        """Explicit overrides as (low id, high id, score) triples."""
        return sorted((min(p), max(p), s) for p, s in self._scores.items())

    def __len__(self) -> int:
        return len(self._scores)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RelationPenalty):
            return NotImplemented
        return self.default == other.default and self._scores == other._scores

    def to_dict(self) -> dict:
        return {
            "default": self.default,
            "pairs": [[a, b, s] for a, b, s in self.pairs()]
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RelationPenalty":
        return cls.from_pairs(
            ((int(a), int(b), s) for a, b, s in data.get("pairs", [])),
            default=data.get("default", 0.0)
        )


class RangeType(Enum):
    """How a range's bounds are interpreted."""
    COUNT = "count"  # Absolute number of members carrying the tag
    RATIO = "ratio"  # Fraction of the live group size


@dataclass(frozen=True)
class Range:
    """Allowed occurrence range for a single tag."""
    range_type: RangeType
    min: float
    max: float

    def __post_init__(self):
        if self.min > self.max:
            raise ValueError(f"Range minimum {self.min} exceeds maximum {self.max}")

    @classmethod
    def count(cls, min: int, max: int) -> "Range":
        return cls(RangeType.COUNT, min, max)

    @classmethod
    def ratio(cls, min: float, max: float) -> "Range":
        return cls(RangeType.RATIO, min, max)

    def contains(self, count: int, n_members: int) -> bool:
        if self.range_type == RangeType.RATIO:
            return self.min * n_members <= count <= self.max * n_members
        return self.min <= count <= self.max

    def to_dict(self) -> dict:
        return {
            "range_type": self.range_type.value,
            "min": self.min,
            "max": self.max
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Range":
        return cls(
            range_type=RangeType(data["range_type"]),
            min=data["min"],
            max=data["max"]
        )


@dataclass(frozen=True)
class Constraint:
    """Per-tag occurrence ranges that every group should satisfy."""
    ranges: Mapping[str, Range] = field(default_factory=dict)

    def check(self, tagcounts: Mapping[str, int], n_members: int) -> set[str]:
        """Return the set of violated tags (empty when satisfied)."""
        return {
            tag for tag, range_ in self.ranges.items()
            if not range_.contains(tagcounts.get(tag, 0), n_members)
        }

    def is_satisfied(self, tagcounts: Mapping[str, int], n_members: int) -> bool:
        return all(
            range_.contains(tagcounts.get(tag, 0), n_members)
            for tag, range_ in self.ranges.items()
        )

    def to_dict(self) -> dict:
        return {
            "ranges": {tag: r.to_dict() for tag, r in self.ranges.items()}
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Constraint":
        return cls(
            ranges={tag: Range.from_dict(r) for tag, r in data.get("ranges", {}).items()}
        )


@dataclass(frozen=True)
class Condition:
    """The penalty and constraint policy governing one run."""
    penalty: RelationPenalty = field(default_factory=RelationPenalty)
    constraint: Constraint = field(default_factory=Constraint)

    def to_dict(self) -> dict:
        return {
            "penalty": self.penalty.to_dict(),
            "constraint": self.constraint.to_dict()
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Condition":
        return cls(
            penalty=RelationPenalty.from_dict(data.get("penalty", {})),
            constraint=Constraint.from_dict(data.get("constraint", {}))
        )
