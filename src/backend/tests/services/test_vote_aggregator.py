"""
Tests for vote aggregation.
"""

from types import SimpleNamespace

import pytest


def _options(*texts: str) -> list[SimpleNamespace]:
    return [SimpleNamespace(id=f"opt-{i}", option_text=text) for i, text in enumerate(texts)]


@pytest.mark.unit
class TestRoundHalfUp:
    """Test the rounding rule used for percentages and growth."""

    @pytest.mark.parametrize(
        "value,expected",
        [(0.5, 1), (2.5, 3), (33.333, 33), (66.667, 67), (-50.0, -50), (-2.5, -2), (0.0, 0)],
    )
    def test_rounding(self, value: float, expected: int) -> None:
        from services.vote_aggregator import round_half_up

        assert round_half_up(value) == expected


@pytest.mark.unit
class TestComputeTally:
    """Test tally computation from raw counts."""

    def test_zero_votes_gives_zero_percentages(self) -> None:
        from services.vote_aggregator import compute_tally

        tally = compute_tally("poll-1", _options("A", "B"), {})

        assert tally.total == 0
        assert [o.count for o in tally.options] == [0, 0]
        assert [o.percentage for o in tally.options] == [0, 0]

    def test_counts_sum_to_total(self) -> None:
        from services.vote_aggregator import compute_tally

        tally = compute_tally("poll-1", _options("A", "B", "C"), {"opt-0": 3, "opt-2": 1})

        assert tally.total == 4
        assert sum(o.count for o in tally.options) == tally.total
        assert [o.percentage for o in tally.options] == [75, 0, 25]

    def test_percentages_round_independently(self) -> None:
        from services.vote_aggregator import compute_tally

        tally = compute_tally("poll-1", _options("A", "B", "C"), {"opt-0": 1, "opt-1": 1, "opt-2": 1})

        # Each option rounds on its own; the sum is allowed to miss 100
        assert [o.percentage for o in tally.options] == [33, 33, 33]

    @pytest.mark.parametrize(
        "option_count,expected_sum",
        [(2, 100), (3, 99), (6, 102), (7, 98), (8, 104), (9, 99), (10, 100)],
    )
    def test_sum_of_equal_split_stays_within_half_option_count(
        self, option_count: int, expected_sum: int
    ) -> None:
        from services.vote_aggregator import compute_tally

        options = _options(*[f"Option {i}" for i in range(option_count)])
        tally = compute_tally("poll-1", options, {o.id: 1 for o in options})

        total_percentage = sum(o.percentage for o in tally.options)
        assert total_percentage == expected_sum
        assert abs(total_percentage - 100) <= option_count / 2

    def test_two_thirds(self) -> None:
        from services.vote_aggregator import compute_tally

        tally = compute_tally("poll-1", _options("A", "B"), {"opt-0": 2, "opt-1": 1})

        assert [o.percentage for o in tally.options] == [67, 33]

    def test_option_order_is_creation_order(self) -> None:
        from services.vote_aggregator import compute_tally

        tally = compute_tally("poll-1", _options("A", "B", "C"), {"opt-2": 10})

        assert [o.option_text for o in tally.options] == ["A", "B", "C"]

    def test_counts_for_foreign_options_are_ignored(self) -> None:
        from services.vote_aggregator import compute_tally

        tally = compute_tally("poll-1", _options("A", "B"), {"opt-0": 1, "other-poll-opt": 5})

        assert tally.total == 1
        assert set(tally.by_option) == {"opt-0", "opt-1"}

    def test_to_dict(self) -> None:
        from services.vote_aggregator import compute_tally

        data = compute_tally("poll-1", _options("A"), {"opt-0": 1}).to_dict()

        assert data == {
            "poll_id": "poll-1",
            "total": 1,
            "options": [{"option_id": "opt-0", "option_text": "A", "count": 1, "percentage": 100}],
        }


@pytest.mark.unit
class TestVoteAggregator:
    """Test tallies read from the database."""

    async def test_tally_missing_poll(self, db_session) -> None:
        from core.exceptions import PollNotFound
        from services.vote_aggregator import VoteAggregator

        with pytest.raises(PollNotFound):
            await VoteAggregator(db_session).tally("missing")

    async def test_tally_many(self, db_session, make_profile) -> None:
        from repositories.poll_repository import PollRepository
        from repositories.vote_repository import VoteRepository
        from services.vote_aggregator import VoteAggregator

        await make_profile("owner-1")
        polls = PollRepository(db_session)
        first = await polls.create("owner-1", "First?", ["A", "B"])
        second = await polls.create("owner-1", "Second?", ["C", "D"])
        await db_session.commit()
        await VoteRepository(db_session).create(first.id, first.options[1].id, "voter-1")
        await db_session.commit()

        tallies = await VoteAggregator(db_session).tally_many([first, second])

        assert tallies[first.id].total == 1
        assert tallies[first.id].by_option[first.options[1].id].percentage == 100
        assert tallies[second.id].total == 0
