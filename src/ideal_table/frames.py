"""Conversion between roster DataFrames and tables."""

from typing import Hashable, Sequence

import pandas as pd

from .cache import TableCache
from .models import Condition, Group, Member, RelationPenalty, Table


def parse_tags(value) -> frozenset[str]:
    """Parse a comma-separated list of tags."""
    if value is None:
        return frozenset()
    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(str(v).strip() for v in value if str(v).strip())
    if pd.isna(value) or not value:
        return frozenset()
    parts = str(value).split(',')
    return frozenset(part.strip() for part in parts if part.strip())


def table_from_frame(
    df: pd.DataFrame,
    id_column: str = "id",
    group_column: str = "group",
    tags_column: str | None = "tags",
    group_labels: Sequence[Hashable] | None = None,
) -> tuple[Table, list[Hashable]]:
    """Build a table from one row per member.

    Groups are ordered by first appearance in ``group_column`` unless
    ``group_labels`` fixes the order (which also allows empty groups).
    Returns the table and the group label for each group index.
    """
    if group_labels is None:
        labels = list(pd.unique(df[group_column]))
    else:
        labels = list(group_labels)
        unknown = set(df[group_column]) - set(labels)
        if unknown:
            raise ValueError(f"Rows reference unknown groups: {sorted(map(str, unknown))}")

    duplicated = df[id_column][df[id_column].duplicated()]
    if not duplicated.empty:
        raise ValueError(f"Duplicate member ids: {sorted(int(i) for i in duplicated)}")

    index_of = {label: i for i, label in enumerate(labels)}
    groups = [Group() for _ in labels]
    for _, row in df.iterrows():
        tags = parse_tags(row[tags_column]) if tags_column else frozenset()
        member = Member(id=int(row[id_column]), tags=tags)
        groups[index_of[row[group_column]]].members.append(member)

    return Table(groups=groups), labels


def table_to_frame(
    table: Table,
    group_labels: Sequence[Hashable] | None = None,
    id_column: str = "id",
    group_column: str = "group",
    tags_column: str = "tags",
) -> pd.DataFrame:
    """One row per member with its group label and comma-joined tags."""
    labels = list(group_labels) if group_labels is not None else list(range(len(table.groups)))
    if len(labels) != len(table.groups):
        raise ValueError(f"Expected {len(table.groups)} group labels, got {len(labels)}")

    rows = []
    for label, group in zip(labels, table.groups):
        for member in group.members:
            rows.append({
                id_column: member.id,
                group_column: label,
                tags_column: ", ".join(sorted(member.tags)),
            })
    return pd.DataFrame(rows, columns=[id_column, group_column, tags_column])


def relation_penalty_from_frame(
    df: pd.DataFrame,
    default: float = 0.0,
    a_column: str = "a",
    b_column: str = "b",
    score_column: str = "score",
) -> RelationPenalty:
    """Build a relation penalty from one row per member pair."""
    pairs = (
        (int(a), int(b), float(score))
        for a, b, score in df[[a_column, b_column, score_column]].itertuples(index=False, name=None)
    )
    return RelationPenalty.from_pairs(pairs, default=default)


def summary_frame(cache: TableCache, condition: Condition) -> pd.DataFrame:
    """Per-group size, penalty score and violated tags."""
    rows = []
    for i, group in enumerate(cache.groups):
        rows.append({
            "group": i,
            "size": len(group),
            "penalty_score": group.penalty_score,
            "violated_tags": ", ".join(sorted(group.violations(condition))),
        })
    return pd.DataFrame(rows, columns=["group", "size", "penalty_score", "violated_tags"])
