"""Incremental scoring cache for group assignments.

A ``GroupCache`` keeps, for each member, the running sum of relation penalties
against its current groupmates. Every evaluation is then O(group size) and no
mutation ever recomputes the pairwise sum from scratch:

- the group's penalty score is half the sum of the cached per-member sums
- removing a member subtracts its cached sum
- adding a member broadcasts its pairwise penalties onto the others

A ``TableCache`` composes one ``GroupCache`` per group and routes
position-addressed actions to them.
"""

from collections import Counter
from itertools import combinations
from typing import Iterable

from .actions import (
    Action, ActionResult, Add, Remove, Swap, Move, Position,
    Failed, classify, invalid_position,
)
from .exceptions import InvalidPositionError
from .models import Condition, Group, Member, RelationPenalty, Score, Table


def calc_score(members: Iterable[Member], penalty: RelationPenalty) -> Score:
    """Full pairwise penalty sum over a set of members (each pair counted once)."""
    return sum(
        (penalty.get_pair(a.id, b.id) for a, b in combinations(members, 2)),
        0.0,
    )


def tally_tags(members: Iterable[Member]) -> Counter:
    counts: Counter = Counter()
    for member in members:
        counts.update(member.tags)
    return counts


# ---------------------------------------------------------------------------
# Single group
# ---------------------------------------------------------------------------

class GroupCache:
    """Cached members, per-member penalty sums, tag counts and penalty score of one group."""

    def __init__(self, members: Iterable[Member], penalty: RelationPenalty):
        self._members: list[Member] = list(members)
        self._cached: list[Score] = [
            self._sum_against(m, penalty, skip=i) for i, m in enumerate(self._members)
        ]
        self.tagcounts: Counter = tally_tags(self._members)
        self.penalty_score: Score = sum(self._cached, 0.0) / 2

    @classmethod
    def from_group(cls, group: Group, penalty: RelationPenalty) -> "GroupCache":
        return cls(group.members, penalty)

    # --- read access -------------------------------------------------------

    def __len__(self) -> int:
        return len(self._members)

    @property
    def members(self) -> tuple[Member, ...]:
        return tuple(self._members)

    def get_member(self, index: int) -> Member | None:
        if 0 <= index < len(self._members):
            return self._members[index]
        return None

    def cached_penalty(self, index: int) -> Score:
        if not 0 <= index < len(self._members):
            raise InvalidPositionError(f"Member index {index} out of range for group of {len(self._members)}")
        return self._cached[index]

    def to_group(self) -> Group:
        return Group(members=list(self._members))

    def _in_bounds(self, index: int) -> bool:
        return 0 <= index < len(self._members)

    def _sum_against(self, member: Member, penalty: RelationPenalty, skip: int = -1) -> Score:
        total = 0.0
        for i, other in enumerate(self._members):
            if i != skip:
                total += penalty.get_pair(member.id, other.id)
        return total

    def violations(self, condition: Condition) -> set[str]:
        return condition.constraint.check(self.tagcounts, len(self._members))

    def recompute(self, condition: Condition) -> tuple[Score, Counter]:
        """From-scratch penalty score and tag tally, for diagnostics only."""
        return calc_score(self._members, condition.penalty), tally_tags(self._members)

    # --- pure evaluators ---------------------------------------------------

    def simulate_add(self, member: Member, condition: Condition) -> ActionResult:
        delta = self._sum_against(member, condition.penalty)
        tagcounts = self.tagcounts + Counter(member.tags)
        satisfied = condition.constraint.is_satisfied(tagcounts, len(self._members) + 1)
        return classify(delta, satisfied)

    def simulate_remove(self, index: int, condition: Condition) -> ActionResult:
        if not self._in_bounds(index):
            return invalid_position()
        removed = self._members[index]
        tagcounts = self.tagcounts - Counter(removed.tags)
        satisfied = condition.constraint.is_satisfied(tagcounts, len(self._members) - 1)
        return classify(-self._cached[index], satisfied)

    def simulate_swap(self, index: int, member: Member, condition: Condition) -> ActionResult:
        if not self._in_bounds(index):
            return invalid_position()
        removed = self._members[index]
        delta = self._sum_against(member, condition.penalty, skip=index) - self._cached[index]
        tagcounts = self.tagcounts + Counter(member.tags) - Counter(removed.tags)
        satisfied = condition.constraint.is_satisfied(tagcounts, len(self._members))
        return classify(delta, satisfied)

    def simulate_exchange(self, index1: int, index2: int, condition: Condition) -> ActionResult:
        """Evaluate swapping two slots of this group; membership is unchanged."""
        failed = [invalid_position() for i in (index1, index2) if not self._in_bounds(i)]
        if failed:
            return sum(failed[1:], failed[0])
        satisfied = condition.constraint.is_satisfied(self.tagcounts, len(self._members))
        return classify(0.0, satisfied)

    # --- mutators ----------------------------------------------------------

    def add(self, member: Member, condition: Condition) -> None:
        penalty = condition.penalty
        own = 0.0
        for i, other in enumerate(self._members):
            pair = penalty.get_pair(member.id, other.id)
            self._cached[i] += pair
            own += pair
        self._members.append(member)
        self._cached.append(own)
        self.tagcounts += Counter(member.tags)
        self.penalty_score += own

    def remove(self, index: int, condition: Condition) -> Member:
        if not self._in_bounds(index):
            raise InvalidPositionError(f"Member index {index} out of range for group of {len(self._members)}")
        penalty = condition.penalty
        member = self._members.pop(index)
        own = self._cached.pop(index)
        for i, other in enumerate(self._members):
            self._cached[i] -= penalty.get_pair(member.id, other.id)
        self.tagcounts -= Counter(member.tags)
        self.penalty_score -= own
        return member

    def swap(self, index: int, member: Member, condition: Condition) -> Member:
        """Replace the member at ``index`` in place and return the displaced one."""
        if not self._in_bounds(index):
            raise InvalidPositionError(f"Member index {index} out of range for group of {len(self._members)}")
        penalty = condition.penalty
        removed = self._members[index]
        old_own = self._cached[index]
        own = 0.0
        for i, other in enumerate(self._members):
            if i == index:
                continue
            pair = penalty.get_pair(member.id, other.id)
            self._cached[i] += pair - penalty.get_pair(removed.id, other.id)
            own += pair
        self._members[index] = member
        self._cached[index] = own
        self.tagcounts -= Counter(removed.tags)
        self.tagcounts += Counter(member.tags)
        self.penalty_score += own - old_own
        return removed

    def exchange(self, index1: int, index2: int) -> None:
        for index in (index1, index2):
            if not self._in_bounds(index):
                raise InvalidPositionError(f"Member index {index} out of range for group of {len(self._members)}")
        members, cached = self._members, self._cached
        members[index1], members[index2] = members[index2], members[index1]
        cached[index1], cached[index2] = cached[index2], cached[index1]


# ---------------------------------------------------------------------------
# Whole table
# ---------------------------------------------------------------------------

class TableCache:
    """One GroupCache per group plus the table-wide penalty score."""

    def __init__(self, groups: Iterable[GroupCache]):
        self._groups: list[GroupCache] = list(groups)
        self.penalty_score: Score = sum((g.penalty_score for g in self._groups), 0.0)

    @classmethod
    def from_table(cls, table: Table, penalty: RelationPenalty) -> "TableCache":
        return cls(GroupCache.from_group(group, penalty) for group in table.groups)

    def to_table(self) -> Table:
        return Table(groups=[g.to_group() for g in self._groups])

    def __len__(self) -> int:
        return len(self._groups)

    @property
    def groups(self) -> tuple[GroupCache, ...]:
        return tuple(self._groups)

    def group_sizes(self) -> list[int]:
        return [len(g) for g in self._groups]

    def get_group(self, group_index: int) -> GroupCache | None:
        if 0 <= group_index < len(self._groups):
            return self._groups[group_index]
        return None

    def get_member(self, position: Position) -> Member | None:
        group = self.get_group(position.group_index)
        if group is None:
            return None
        return group.get_member(position.member_index)

    def violations(self, condition: Condition) -> dict[int, set[str]]:
        """Violated tags per group index, only for groups that violate something."""
        result = {}
        for i, group in enumerate(self._groups):
            tags = group.violations(condition)
            if tags:
                result[i] = tags
        return result

    # --- evaluation --------------------------------------------------------

    def simulate(self, action: Action, condition: Condition) -> ActionResult:
        """Evaluate ``action`` against the current state without mutating anything."""
        if isinstance(action, Add):
            group = self.get_group(action.group_index)
            if group is None:
                return invalid_position()
            return group.simulate_add(action.member, condition)

        if isinstance(action, Remove):
            group = self.get_group(action.position.group_index)
            if group is None:
                return invalid_position()
            return group.simulate_remove(action.position.member_index, condition)

        if isinstance(action, Swap):
            first, second = action.first, action.second
            member1 = self.get_member(first)
            member2 = self.get_member(second)
            if member1 is None or member2 is None:
                return _failures(member1 is None, member2 is None)
            group1 = self._groups[first.group_index]
            if first.group_index == second.group_index:
                return group1.simulate_exchange(first.member_index, second.member_index, condition)
            group2 = self._groups[second.group_index]
            return (group1.simulate_swap(first.member_index, member2, condition)
                    + group2.simulate_swap(second.member_index, member1, condition))

        if isinstance(action, Move):
            member = self.get_member(action.source)
            target = self.get_group(action.target_group)
            if member is None or target is None:
                return _failures(member is None, target is None)
            source = self._groups[action.source.group_index]
            if source is target:
                satisfied = condition.constraint.is_satisfied(source.tagcounts, len(source))
                return classify(0.0, satisfied)
            return (source.simulate_remove(action.source.member_index, condition)
                    + target.simulate_add(member, condition))

        raise TypeError(f"Unknown action: {action!r}")

    # --- mutation ----------------------------------------------------------

    def act(self, action: Action, condition: Condition) -> Member | None:
        """Apply ``action``.

        Returns the displaced member for ``Remove`` and ``Move``, ``None`` for
        ``Add`` and ``Swap``. Raises ``InvalidPositionError`` before touching
        any state when a position does not resolve.
        """
        if isinstance(action, Add):
            group = self._require_group(action.group_index)
            before = group.penalty_score
            group.add(action.member, condition)
            self.penalty_score += group.penalty_score - before
            return None

        if isinstance(action, Remove):
            self._require_member(action.position)
            group = self._groups[action.position.group_index]
            before = group.penalty_score
            member = group.remove(action.position.member_index, condition)
            self.penalty_score += group.penalty_score - before
            return member

        if isinstance(action, Swap):
            first, second = action.first, action.second
            member1 = self._require_member(first)
            member2 = self._require_member(second)
            group1 = self._groups[first.group_index]
            if first.group_index == second.group_index:
                group1.exchange(first.member_index, second.member_index)
                return None
            group2 = self._groups[second.group_index]
            before = group1.penalty_score + group2.penalty_score
            group1.swap(first.member_index, member2, condition)
            group2.swap(second.member_index, member1, condition)
            self.penalty_score += group1.penalty_score + group2.penalty_score - before
            return None

        if isinstance(action, Move):
            self._require_member(action.source)
            target = self._require_group(action.target_group)
            source = self._groups[action.source.group_index]
            affected = [source] if source is target else [source, target]
            before = sum(g.penalty_score for g in affected)
            member = source.remove(action.source.member_index, condition)
            target.add(member, condition)
            self.penalty_score += sum(g.penalty_score for g in affected) - before
            return member

        raise TypeError(f"Unknown action: {action!r}")

    def _require_group(self, group_index: int) -> GroupCache:
        group = self.get_group(group_index)
        if group is None:
            raise InvalidPositionError(f"Group index {group_index} out of range for table of {len(self._groups)}")
        return group

    def _require_member(self, position: Position) -> Member:
        member = self.get_member(position)
        if member is None:
            raise InvalidPositionError(f"No member at {position}")
        return member


def _failures(*sides_failed: bool) -> Failed:
    result = None
    for failed in sides_failed:
        if failed:
            result = invalid_position() if result is None else result + invalid_position()
    return result
