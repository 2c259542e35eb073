"""
Tests for profile questionnaire answer kinds and their scoring.
"""
import pytest

from aptitude.core.question_kinds import (
    ForcedChoicePair,
    MultipleChoice,
    OpenEnded,
    Ranking,
    ScaleRating,
    aggregate_dimension_scores,
    score_answer,
)


class TestValidation:
    @pytest.mark.parametrize("value", [0, 11])
    def test_scale_out_of_range(self, value):
        with pytest.raises(ValueError, match="Scale value"):
            ScaleRating(value=value)

    def test_negative_option(self):
        with pytest.raises(ValueError, match="option_index"):
            MultipleChoice(option_index=-1)

    def test_blank_open_ended(self):
        with pytest.raises(ValueError):
            OpenEnded(text="   ")

    def test_forced_choice_same_dimension(self):
        with pytest.raises(ValueError):
            ForcedChoicePair("openness", "openness", chose_first=True)

    def test_ranking_empty_or_duplicated(self):
        with pytest.raises(ValueError):
            Ranking(ordered_dimensions=())
        with pytest.raises(ValueError, match="duplicate"):
            Ranking(ordered_dimensions=("a", "a"))


class TestScoreAnswer:
    def test_scale_rating(self):
        assert score_answer("curiosity", ScaleRating(value=8)) == {"curiosity": 8}

    def test_reverse_scored_scale(self):
        assert score_answer("curiosity", ScaleRating(value=8, reverse_scored=True)) == {
            "curiosity": 3
        }

    def test_weighted_scale(self):
        assert score_answer("d", ScaleRating(value=5, weight=1.5)) == {"d": 7.5}

    def test_multiple_choice(self):
        assert score_answer("d", MultipleChoice(option_index=2)) == {"d": 3}

    def test_open_ended_not_scored(self):
        assert score_answer("d", OpenEnded(text="I like maps")) == {}

    def test_forced_choice(self):
        chose_second = ForcedChoicePair("social", "investigative", chose_first=False)
        assert score_answer("ignored", chose_second) == {
            "investigative": 10.0,
            "social": 1.0,
        }

    def test_ranking_linear(self):
        result = score_answer("ignored", Ranking(("art", "math", "music", "sport")))
        assert result == pytest.approx(
            {"art": 10.0, "math": 7.0, "music": 4.0, "sport": 1.0}
        )

    def test_single_entry_ranking(self):
        assert score_answer("x", Ranking(("art",))) == {"art": 10.0}


class TestAggregateDimensionScores:
    def test_average_and_confidence(self):
        scores = aggregate_dimension_scores(
            [
                score_answer("curiosity", ScaleRating(value=8)),
                score_answer("curiosity", ScaleRating(value=6)),
                score_answer("x", ForcedChoicePair("curiosity", "order", chose_first=True)),
            ]
        )
        curiosity = scores["curiosity"]
        assert curiosity.count == 3
        assert curiosity.raw_score == pytest.approx(8.0)
        assert curiosity.score == pytest.approx(80.0)
        assert curiosity.confidence == pytest.approx(30.0)
        assert scores["order"].score == pytest.approx(10.0)

    def test_confidence_caps_at_100(self):
        scores = aggregate_dimension_scores(
            [{"d": 5.0} for _ in range(15)]
        )
        assert scores["d"].confidence == 100.0

    def test_empty(self):
        assert aggregate_dimension_scores([]) == {}
