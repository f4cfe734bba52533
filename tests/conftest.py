"""Shared fixtures: two groups of three members along a penalty chain."""
import random

import pytest

from ideal_table.cache import TableCache
from ideal_table.models import (
    Condition, Constraint, Group, Member, Range, RelationPenalty, Table,
)


def make_table() -> Table:
    return Table(groups=[
        Group(members=[
            Member(0, {"a"}),
            Member(1, {"b"}),
            Member(2, {"c"}),
        ]),
        Group(members=[
            Member(3, {"a", "b"}),
            Member(4, {"a", "c"}),
            Member(5, {"b", "c"}),
        ]),
    ])


def make_condition() -> Condition:
    penalty = RelationPenalty.from_pairs(
        [(0, 1, 1), (1, 2, 2), (2, 3, 3), (3, 4, 4), (4, 5, 5), (5, 6, 6)],
        default=0.0,
    )
    constraint = Constraint({
        "a": Range.count(1, 2),
        "b": Range.count(1, 2),
        "c": Range.count(1, 2),
    })
    return Condition(penalty=penalty, constraint=constraint)


def make_random_instance(rng: random.Random, n_groups: int = 4, group_size: int = 5):
    """Random table and condition with integer-valued penalties."""
    tags = ["x", "y", "z"]
    members = [
        Member(i, {t for t in tags if rng.random() < 0.4})
        for i in range(n_groups * group_size)
    ]
    pairs = [
        (a, b, rng.randint(-3, 9))
        for a in range(len(members))
        for b in range(a + 1, len(members))
        if rng.random() < 0.5
    ]
    penalty = RelationPenalty.from_pairs(pairs, default=1.0)
    constraint = Constraint({
        "x": Range.count(1, 3),
        "y": Range.ratio(0.2, 0.6),
    })
    table = Table(groups=[
        Group(members=members[g * group_size:(g + 1) * group_size])
        for g in range(n_groups)
    ])
    return table, Condition(penalty=penalty, constraint=constraint)


@pytest.fixture
def table() -> Table:
    return make_table()


@pytest.fixture
def condition() -> Condition:
    return make_condition()


@pytest.fixture
def cache(table: Table, condition: Condition) -> TableCache:
    return TableCache.from_table(table, condition.penalty)
