from collections import Counter

import pytest

from ideal_table.models import (
    Condition, Constraint, Member, Range, RangeType, RelationPenalty, Table,
)


def test_get_pair_is_symmetric_with_default() -> None:
    penalty = RelationPenalty.from_pairs([(1, 2, 3.5)], default=-1.0)

    assert penalty.get_pair(1, 2) == 3.5
    assert penalty.get_pair(2, 1) == 3.5
    assert penalty.get_pair(1, 3) == -1.0


def test_relation_penalty_rejects_self_pair() -> None:
    with pytest.raises(ValueError):
        RelationPenalty.from_pairs([(4, 4, 1.0)])
    with pytest.raises(ValueError):
        RelationPenalty(scores={frozenset({4}): 1.0})


def test_relation_penalty_later_pair_overrides_earlier() -> None:
    penalty = RelationPenalty.from_pairs([(1, 2, 1.0), (2, 1, 7.0)])

    assert len(penalty) == 1
    assert penalty.get_pair(1, 2) == 7.0


def test_member_tags_are_frozen() -> None:
    member = Member(1, ["a", "b", "a"])

    assert member.tags == frozenset({"a", "b"})
    assert Member.from_dict(member.to_dict()) == member


def test_count_range_compares_directly() -> None:
    range_ = Range.count(1, 2)

    assert not range_.contains(0, 10)
    assert range_.contains(1, 10)
    assert range_.contains(2, 1)
    assert not range_.contains(3, 3)


def test_ratio_range_scales_with_group_size() -> None:
    range_ = Range.ratio(0.25, 0.5)

    assert range_.range_type == RangeType.RATIO
    assert range_.contains(1, 4)
    assert range_.contains(2, 4)
    assert not range_.contains(3, 4)
    # 0.25 * 8 = 2 is the floor
    assert not range_.contains(1, 8)


def test_range_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        Range.count(3, 1)


def test_constraint_reports_every_violated_tag() -> None:
    constraint = Constraint({
        "a": Range.count(1, 2),
        "b": Range.count(1, 2),
        "c": Range.ratio(0.0, 0.5),
    })
    counts = Counter({"a": 3, "c": 2, "unconstrained": 99})

    assert constraint.check(counts, 3) == {"a", "b", "c"}
    assert not constraint.is_satisfied(counts, 3)
    assert constraint.check(Counter({"a": 1, "b": 2}), 4) == set()
    assert constraint.is_satisfied(Counter({"a": 1, "b": 2}), 4)


def test_empty_constraint_is_always_satisfied() -> None:
    assert Constraint().check(Counter({"a": 5}), 1) == set()


def test_condition_dict_round_trip(condition: Condition) -> None:
    restored = Condition.from_dict(condition.to_dict())

    assert restored.penalty == condition.penalty
    assert restored.constraint == condition.constraint


def test_table_lookup_by_member_id(table: Table) -> None:
    assert table.get_member_by_id(4) == Member(4, {"a", "c"})
    assert table.get_member_by_id(42) is None
    assert Table.from_dict(table.to_dict()) == table
