import pytest

from ideal_table.actions import (
    ActionError, Failed, ScoreDiff, UnsatisfiedScoreDiff, classify,
)

IP = ActionError.INVALID_POSITION


def test_satisfied_results_add_up() -> None:
    assert ScoreDiff(1.5) + ScoreDiff(-4.0) == ScoreDiff(-2.5)


@pytest.mark.parametrize("left, right", [
    (ScoreDiff(1.0), UnsatisfiedScoreDiff(2.0)),
    (UnsatisfiedScoreDiff(1.0), ScoreDiff(2.0)),
    (UnsatisfiedScoreDiff(1.0), UnsatisfiedScoreDiff(2.0)),
])
def test_unsatisfied_side_taints_the_sum(left, right) -> None:
    assert left + right == UnsatisfiedScoreDiff(3.0)
    assert right + left == UnsatisfiedScoreDiff(3.0)


@pytest.mark.parametrize("other", [ScoreDiff(1.0), UnsatisfiedScoreDiff(-1.0)])
def test_failed_dominates_from_either_side(other) -> None:
    assert Failed((IP,)) + other == Failed((IP,))
    assert other + Failed((IP,)) == Failed((IP,))


def test_failed_errors_are_concatenated() -> None:
    assert Failed((IP,)) + Failed((IP,)) == Failed((IP, IP))


def test_classify() -> None:
    assert classify(2.0, True) == ScoreDiff(2.0)
    assert classify(2.0, False) == UnsatisfiedScoreDiff(2.0)
