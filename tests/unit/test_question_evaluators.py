"""
Unit tests for question evaluators.

Tests scoring, the diagnostic path for malformed content, and hints for each
question kind.
"""

from fractions import Fraction

import pytest

from strandlab.errors import GradingProviderError
from strandlab.integrations.grading_client import GradeResult
from strandlab.questions import (
    HANDLERS,
    QuestionType,
    evaluate_answer,
    evaluate_fill_blank,
    evaluate_match_click,
    evaluate_mcq,
    evaluate_short_answer,
    get_evaluator,
    question_hint,
)
from strandlab.questions.models import parse_question
from strandlab.questions.scoring import bucket_score, passes

FULL_ANSWER = (
    "Total internal reflection happens at an angle greater than critical so all light "
    "reflected back into the dense medium, it is reflected past the critical angle."
)


class TestEvaluatorRegistry:
    """Test the evaluator registry."""

    def test_every_question_type_has_an_evaluator(self):
        """Each QuestionType member must be registered."""
        assert set(HANDLERS) == set(QuestionType)

    def test_get_evaluator_by_string(self):
        assert get_evaluator("fill-blank") is HANDLERS[QuestionType.FILL_BLANK]

    def test_get_evaluator_invalid_type(self):
        assert get_evaluator("true-false") is None


class TestMCQ:
    """Test MCQ scoring."""

    def test_correct_option_scores_level(self, mcq_question):
        response = evaluate_mcq(mcq_question, "b")

        assert response.is_correct is True
        assert response.score == 4
        assert response.question_id == "ca_s1_l4_mcq1"
        assert response.type == "mcq"

    def test_partial_credit_option(self, mcq_question):
        response = evaluate_mcq(mcq_question, "c")

        assert response.is_correct is False
        assert response.score == 3

    def test_partial_level_equal_to_question_level(self, mcq_question):
        """A wrong option worth the full level still is not correct."""
        mcq_question["options"][2]["level"] = 4
        response = evaluate_mcq(mcq_question, "c")

        assert response.score == 4
        assert response.is_correct is False

    def test_partial_level_clamped(self, mcq_question):
        mcq_question["options"][2]["level"] = 12
        response = evaluate_mcq(mcq_question, "c")

        assert response.score == 4

    def test_wrong_option_without_level_scores_zero(self, mcq_question):
        response = evaluate_mcq(mcq_question, "a")

        assert response.score == 0
        assert response.is_correct is False
        assert "Not quite." in response.feedback

    def test_unknown_option_is_diagnostic(self, mcq_question):
        response = evaluate_mcq(mcq_question, "z")

        assert response.score == 0
        assert response.is_correct is False
        assert response.diagnostic is True
        assert "unknown option" in response.feedback

    def test_two_correct_options_is_diagnostic(self, mcq_question):
        mcq_question["options"][0]["isCorrect"] = True
        response = evaluate_mcq(mcq_question, "b")

        assert response.diagnostic is True
        assert response.score == 0

    def test_feedback_is_deterministic(self, mcq_question):
        assert evaluate_mcq(mcq_question, "b").feedback == evaluate_mcq(mcq_question, "b").feedback

    def test_explanation_appended(self, mcq_question):
        response = evaluate_mcq(mcq_question, "a")
        assert response.feedback.endswith(mcq_question["explanation"])

    def test_hint_eliminates_wrong_options_in_order(self, mcq_question):
        question = parse_question(mcq_question)

        assert "Light is completely absorbed" in question_hint(question, 1)
        assert "Light travels parallel" in question_hint(question, 2)
        # One wrong option always stays
        assert question_hint(question, 3) is None

    def test_does_not_mutate_input(self, mcq_question):
        before = repr(mcq_question)
        evaluate_mcq(mcq_question, "b")
        assert repr(mcq_question) == before


class TestScoringPolicy:
    """Breakpoints of the shared partial-credit step function."""

    @pytest.mark.parametrize(
        "fraction,expected",
        [
            (Fraction(29, 100), 0),
            (Fraction(30, 100), 5),
            (Fraction(49, 100), 5),
            (Fraction(50, 100), 6),
            (Fraction(69, 100), 6),
            (Fraction(70, 100), 7),
            (Fraction(89, 100), 7),
            (Fraction(90, 100), 8),
            (0.29, 0),
            (0.3, 5),
            (0.7, 7),
            (0.9, 8),
        ],
    )
    def test_bucket_score_at_breakpoints(self, fraction, expected):
        assert bucket_score(8, fraction) == expected

    @pytest.mark.parametrize(
        "fraction,expected",
        [(Fraction(69, 100), False), (Fraction(70, 100), True), (0.69, False), (0.7, True)],
    )
    def test_passes_from_seventy_percent(self, fraction, expected):
        assert passes(fraction) is expected

    def test_low_level_never_negative(self):
        assert bucket_score(2, Fraction(1, 3)) == 0


class TestFillBlank:
    """Test fill-blank scoring."""

    def test_all_blanks_correct(self, fill_blank_question):
        response = evaluate_fill_blank(fill_blank_question, {"blank1": "refraction", "blank2": "normal"})

        assert response.score == 8
        assert response.is_correct is True

    def test_half_correct_level_8(self, fill_blank_question):
        response = evaluate_fill_blank(fill_blank_question, {"blank1": "refraction", "blank2": "wrong"})

        assert response.score == 6
        assert response.is_correct is False
        assert "1/2 blanks correct." in response.feedback

    def test_positional_answers_trimmed_and_case_insensitive(self, fill_blank_question):
        response = evaluate_fill_blank(fill_blank_question, ["  Refraction ", "NORMAL"])

        assert response.score == 8
        assert response.answer == {"blank1": "  Refraction ", "blank2": "NORMAL"}

    def test_case_sensitive_blank(self, fill_blank_question):
        fill_blank_question["blanks"][0]["caseSensitive"] = True
        response = evaluate_fill_blank(fill_blank_question, ["Refraction", "normal"])

        assert response.score == 6

    def test_missing_answers_count_as_wrong(self, fill_blank_question):
        response = evaluate_fill_blank(fill_blank_question, {})

        assert response.score == 0
        assert response.is_correct is False

    def test_bad_payload_is_diagnostic(self, fill_blank_question):
        response = evaluate_fill_blank(fill_blank_question, 42)

        assert response.diagnostic is True

    def test_blank_without_answers_is_diagnostic(self, fill_blank_question):
        fill_blank_question["blanks"][1]["correctAnswers"] = []
        response = evaluate_fill_blank(fill_blank_question, ["refraction", "normal"])

        assert response.diagnostic is True
        assert response.score == 0

    def test_hint_uses_nth_hint_per_blank(self, fill_blank_question):
        question = parse_question(fill_blank_question)

        assert question_hint(question, 1) == (
            "Blank 1: Think about light bending | Blank 2: Perpendicular line to surface"
        )
        assert question_hint(question, 2) == "Blank 1: It starts with 'r'"
        assert question_hint(question, 3) is None

    @pytest.mark.parametrize(
        "right,score,correct",
        [
            (10, 8, True),
            (9, 8, True),
            (8, 7, True),
            (7, 7, True),
            (6, 6, False),
            (5, 6, False),
            (4, 5, False),
            (3, 5, False),
            (2, 0, False),
        ],
    )
    def test_ten_blanks_step_through_buckets(self, fill_blank_question, right, score, correct):
        fill_blank_question["text"] = " ".join("{blank}" for _ in range(10))
        fill_blank_question["blanks"] = [
            {"id": f"b{i}", "correctAnswers": [f"word{i}"]} for i in range(10)
        ]
        answers = [f"word{i}" if i < right else "nope" for i in range(10)]

        response = evaluate_fill_blank(fill_blank_question, answers)

        assert response.score == score
        assert response.is_correct is correct
        assert f"{right}/10 blanks correct." in response.feedback



class TestMatchClick:
    """Test match-click scoring."""

    def test_all_pairs_in_any_order(self, match_question):
        pairs = [("scenario3", "result3"), ("scenario1", "result1"), ("scenario2", "result2")]
        response = evaluate_match_click(match_question, pairs)

        assert response.score == 6
        assert response.is_correct is True

    def test_duplicates_count_once(self, match_question):
        pairs = [{"leftId": "scenario1", "rightId": "result1"}] * 3
        response = evaluate_match_click(match_question, pairs)

        # 1/3 correct -> 0.33 -> level - 3
        assert response.score == 3
        assert response.is_correct is False

    def test_mapping_submission(self, match_question):
        response = evaluate_match_click(
            match_question, {"scenario1": "result1", "scenario2": "result3", "scenario3": "result2"}
        )

        # 1/3 correct -> 0.33 -> level - 3
        assert response.score == 3
        assert response.is_correct is False

    def test_partial_mapping(self, match_question):
        response = evaluate_match_click(match_question, {"scenario1": "result1", "scenario2": "result2"})

        # 2/3 correct -> 0.67 -> level - 2
        assert response.score == 4
        assert response.is_correct is False

    def test_every_combination_is_diagnostic(self, match_question):
        lefts = [item["id"] for item in match_question["leftItems"]]
        rights = [item["id"] for item in match_question["rightItems"]]
        response = evaluate_match_click(match_question, [(left, right) for left in lefts for right in rights])

        assert response.diagnostic is True
        assert response.score == 0
        assert response.is_correct is False

    def test_right_item_reused_is_diagnostic(self, match_question):
        response = evaluate_match_click(
            match_question, {"scenario1": "result1", "scenario2": "result2", "scenario3": "result1"}
        )

        assert response.diagnostic is True
        assert "result1" in response.feedback

    def test_left_item_reused_is_diagnostic(self, match_question):
        response = evaluate_match_click(match_question, [("scenario1", "result1"), ("scenario1", "result2")])

        assert response.diagnostic is True
        assert "scenario1" in response.feedback

    def test_malformed_pairs_are_diagnostic(self, match_question):
        response = evaluate_match_click(match_question, ["scenario1"])

        assert response.diagnostic is True

    def test_non_bijective_key_is_diagnostic(self, match_question):
        match_question["correctMatches"][2]["leftId"] = "scenario1"
        response = evaluate_match_click(match_question, [])

        assert response.diagnostic is True

    def test_hint_reveals_one_pair(self, match_question):
        question = parse_question(match_question)

        assert question_hint(question, 1) == (
            "Hint: 'Angle < Critical Angle' matches with 'Light refracts into second medium'"
        )
        assert question_hint(question, 3) is None


class StubGrader:
    def __init__(self, score=None, error=None):
        self.score = score
        self.error = error
        self.calls = 0

    async def grade(self, question, text):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return GradeResult(question_id=question.id, score=self.score, feedback="Graded remotely.")


class PayloadGrader:
    """Parses a raw provider payload the way the HTTP client does."""

    def __init__(self, payload):
        self.payload = payload

    async def grade(self, question, text):
        return GradeResult.from_dict(self.payload)


class TestShortAnswer:
    """Test short-answer scoring."""

    @pytest.mark.asyncio
    async def test_too_short_scores_zero(self, short_answer_question):
        response = await evaluate_short_answer(
            short_answer_question, "total internal reflection uses the critical angle in a dense medium"
        )

        assert response.score == 0
        assert response.is_correct is False
        assert "Minimum 15 words" in response.feedback

    @pytest.mark.asyncio
    async def test_full_coverage(self, short_answer_question):
        response = await evaluate_short_answer(short_answer_question, FULL_ANSWER)

        assert response.score == 4
        assert response.is_correct is True

    @pytest.mark.asyncio
    async def test_partial_keyword_coverage(self, short_answer_question):
        text = (
            "I think total internal reflection is something about the critical angle "
            "that happens with light in glass blocks"
        )
        response = await evaluate_short_answer(short_answer_question, text)

        # 4 * (0.6 * 2/4 + 0.4 * 0) = 1.2
        assert response.score == 1
        assert response.is_correct is False

    @pytest.mark.asyncio
    async def test_too_long_is_capped(self, short_answer_question):
        text = FULL_ANSWER + " more" * 30
        response = await evaluate_short_answer(short_answer_question, text)

        assert response.score == 2
        assert response.is_correct is False
        assert "Maximum 50 words" in response.feedback

    @pytest.mark.asyncio
    async def test_grader_score_used(self, short_answer_question):
        grader = StubGrader(score=3.6)
        response = await evaluate_short_answer(short_answer_question, FULL_ANSWER, grader=grader)

        assert grader.calls == 1
        assert response.score == 4
        assert "Graded remotely." in response.feedback

    @pytest.mark.asyncio
    async def test_grader_score_clamped(self, short_answer_question):
        response = await evaluate_short_answer(short_answer_question, FULL_ANSWER, grader=StubGrader(score=11))

        assert response.score == 4

    @pytest.mark.asyncio
    async def test_grader_failure_falls_back_to_local(self, short_answer_question):
        grader = StubGrader(error=GradingProviderError("down"))
        response = await evaluate_short_answer(short_answer_question, FULL_ANSWER, grader=grader)

        assert response.score == 4
        assert response.is_correct is True
        assert response.diagnostic is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("score", ["nan", "inf", 1e999])
    async def test_non_finite_grader_score_falls_back_to_local(self, short_answer_question, score):
        grader = PayloadGrader({"score": score, "feedback": "Graded remotely."})
        response = await evaluate_short_answer(short_answer_question, FULL_ANSWER, grader=grader)

        assert response.score == 4
        assert response.diagnostic is False
        assert "Graded remotely." not in response.feedback

    @pytest.mark.asyncio
    async def test_short_answer_not_consulted_when_too_short(self, short_answer_question):
        grader = StubGrader(score=4)
        await evaluate_short_answer(short_answer_question, "too short", grader=grader)

        assert grader.calls == 0

    def test_hints(self, short_answer_question):
        question = parse_question(short_answer_question)

        assert "dense medium" in question_hint(question, 1)
        assert "all light reflected" in question_hint(question, 2)
        assert question_hint(question, 3) is None


class TestEvaluateAnswer:
    """Test the generic dispatch entry point."""

    @pytest.mark.asyncio
    async def test_dispatches_by_type(self, mcq_question, fill_blank_question):
        assert (await evaluate_answer(mcq_question, "b")).score == 4
        assert (await evaluate_answer(fill_blank_question, ["refraction", "normal"])).score == 8

    @pytest.mark.asyncio
    async def test_unknown_type_is_diagnostic(self):
        response = await evaluate_answer({"id": "q1", "type": "true-false", "level": 2}, True)

        assert response.diagnostic is True
        assert response.score == 0
        assert response.question_id == "q1"

    @pytest.mark.asyncio
    async def test_bad_level_is_diagnostic(self, mcq_question):
        mcq_question["level"] = 5
        response = await evaluate_answer(mcq_question, "b")

        assert response.diagnostic is True
        assert response.score == 0
