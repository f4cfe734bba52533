import math

import pandas as pd
import pytest

from ideal_table.cache import TableCache
from ideal_table.frames import (
    parse_tags, relation_penalty_from_frame, summary_frame, table_from_frame,
    table_to_frame,
)
from ideal_table.models import Member


def roster() -> pd.DataFrame:
    return pd.DataFrame({
        "id": [10, 11, 12, 13],
        "group": ["B", "A", "B", "A"],
        "tags": ["a, b", None, "c", "a,,a"],
    })


@pytest.mark.parametrize("value, expected", [
    (None, frozenset()),
    (math.nan, frozenset()),
    ("", frozenset()),
    ("a", frozenset({"a"})),
    (" a , b ,", frozenset({"a", "b"})),
    (["x", " y "], frozenset({"x", "y"})),
])
def test_parse_tags(value, expected) -> None:
    assert parse_tags(value) == expected


def test_table_from_frame_orders_groups_by_first_appearance() -> None:
    table, labels = table_from_frame(roster())

    assert labels == ["B", "A"]
    assert table.groups[0].members == [Member(10, {"a", "b"}), Member(12, {"c"})]
    assert table.groups[1].members == [Member(11), Member(13, {"a"})]


def test_table_from_frame_with_explicit_labels_allows_empty_groups() -> None:
    table, labels = table_from_frame(roster(), group_labels=["A", "B", "C"])

    assert labels == ["A", "B", "C"]
    assert [g.member_ids() for g in table.groups] == [[11, 13], [10, 12], []]


def test_table_from_frame_rejects_unknown_groups_and_duplicates() -> None:
    with pytest.raises(ValueError):
        table_from_frame(roster(), group_labels=["A"])

    duplicated = roster()
    duplicated.loc[3, "id"] = 10
    with pytest.raises(ValueError):
        table_from_frame(duplicated)


def test_table_to_frame() -> None:
    table, labels = table_from_frame(roster())

    df = table_to_frame(table, labels)

    assert list(df.columns) == ["id", "group", "tags"]
    assert df["id"].tolist() == [10, 12, 11, 13]
    assert df["group"].tolist() == ["B", "B", "A", "A"]
    assert df["tags"].tolist() == ["a, b", "c", "", "a"]

    with pytest.raises(ValueError):
        table_to_frame(table, ["only one"])


def test_relation_penalty_from_frame() -> None:
    pairs = pd.DataFrame({"a": [10, 12], "b": [11, 10], "score": [2.5, -1]})

    penalty = relation_penalty_from_frame(pairs, default=0.5)

    assert penalty.get_pair(11, 10) == 2.5
    assert penalty.get_pair(10, 12) == -1.0
    assert penalty.get_pair(11, 12) == 0.5

    with pytest.raises(ValueError):
        relation_penalty_from_frame(pd.DataFrame({"a": [1], "b": [1], "score": [1.0]}))


def test_summary_frame(cache, condition) -> None:
    df = summary_frame(cache, condition)

    assert df["size"].tolist() == [3, 3]
    assert df["penalty_score"].tolist() == [3.0, 9.0]
    assert df["violated_tags"].tolist() == ["", ""]


def test_summary_frame_lists_violations(condition) -> None:
    table, _ = table_from_frame(pd.DataFrame({
        "id": [0, 1, 2, 3],
        "group": [0, 0, 1, 1],
        "tags": ["a", "a, b", "a, b, c", "c"],
    }))
    cache = TableCache.from_table(table, condition.penalty)

    df = summary_frame(cache, condition)

    assert df["violated_tags"].tolist() == ["c", ""]
    assert df["penalty_score"].tolist() == [1.0, 3.0]
