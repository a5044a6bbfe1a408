"""
Unit tests for rubric grading of written work.
"""

import pytest

from strandlab.rubric import (
    NO_RUBRIC_SUGGESTION,
    FilenameGraphClassifier,
    GraphInfo,
    GraphType,
    RubricBook,
    RubricEvaluator,
    StrandRubric,
    evaluate_text,
)
from strandlab.rubric.evaluator import length_level
from strandlab.rubric.image_classifier import image_level
from strandlab.rubric.table_structure import check_table_structure, parse_artifact

FULL_TABLE = """
<table>
<tr><th>Trial</th><th>Angle (degrees)</th><th>Average</th></tr>
<tr><td>1</td><td>30</td><td>31</td></tr>
<tr><td>2</td><td>45</td><td>44</td></tr>
</table>
"""


@pytest.fixture
def rubric():
    return StrandRubric.model_validate({
        "keywords": [
            {"label": "basic", "level": 2, "words": ["light"]},
            {"label": "refraction", "level": 6, "words": ["refraction", "refract"]},
            {"label": "critical angle", "level": 8, "words": ["critical angle"]},
        ],
        "concepts": [
            {"label": "light bending", "level": 4, "words": ["bends"]},
            {"label": "total internal reflection", "level": 8, "words": ["total internal reflection"]},
        ],
        "suggestions": ["Describe your method.", "Compare with theory.", "State a conclusion."],
    })


class TestWorkedExample:
    def test_blended_level(self, rubric):
        """keyword 6, concept 4, length 6, structure 6, no image -> 4.8 -> 5."""
        paragraph = "Light refraction bends " + "word " * 107
        text = f"""<div>
<p>{paragraph}</p>
<table>
<tr><th>Trial</th><th>Angle (degrees)</th></tr>
<tr><td>1</td><td>30</td></tr>
<tr><td>2</td><td>45</td></tr>
</table>
</div>"""

        result = evaluate_text(text, rubric)

        assert result.keyword_level == 6
        assert result.concept_level == 4
        assert 100 <= result.word_count < 150
        assert result.length_level == 6
        assert result.structure_level == 6
        assert result.image_level == 0
        assert result.level == 5
        assert [m.label for m in result.matched_keywords] == ["basic", "refraction"]
        assert result.suggestions == [
            "Consider adding a column for averages.",
            'Use terms like "critical angle" to reach level 8.',
            "Explain total internal reflection to reach level 8.",
        ]

    def test_deterministic(self, rubric):
        text = "Light bends by refraction at the critical angle."
        assert evaluate_text(text, rubric) == evaluate_text(text, rubric)


class TestComponents:
    def test_empty_text(self, rubric):
        result = evaluate_text("", rubric)

        assert result.level == 0
        assert result.word_count == 0
        assert result.suggestions[0] == "You might want to include a data table."

    def test_matching_is_case_insensitive(self, rubric):
        result = evaluate_text("TOTAL INTERNAL REFLECTION past the Critical Angle", rubric)

        assert result.keyword_level == 8
        assert result.concept_level == 8

    def test_length_buckets(self):
        assert length_level(19) == 0
        assert length_level(20) == 2
        assert length_level(50) == 4
        assert length_level(120) == 6
        assert length_level(150) == 8

    def test_sibling_elements_split_words(self):
        artifact = parse_artifact("<p>alpha beta</p><p>gamma delta</p><p>epsilon</p>")

        assert artifact.text == "alpha beta gamma delta epsilon"

    @pytest.mark.parametrize("paragraphs,expected", [(19, 0), (20, 2), (50, 4)])
    def test_multi_paragraph_length(self, rubric, paragraphs, expected):
        result = evaluate_text("<div>" + "<p>word</p>" * paragraphs + "</div>", rubric)

        assert result.word_count == paragraphs
        assert result.length_level == expected

    def test_table_cells_counted_separately(self, rubric):
        result = evaluate_text(FULL_TABLE, rubric)

        # Trial Angle (degrees) Average 1 30 31 2 45 44
        assert result.word_count == 10

    def test_full_table_scores_eight(self):
        check = check_table_structure(parse_artifact(FULL_TABLE))

        assert check.score == 8
        assert check.suggestions == []
        assert check.rows == 3

    def test_sparse_table(self):
        check = check_table_structure(parse_artifact("<table><tr><td>1</td></tr></table>"))

        assert check.score == 0
        assert check.suggestions == [
            "Try adding at least 3 rows of data.",
            "Consider adding a column for averages.",
            "Try including multiple trials.",
            "Include units in your table headers.",
        ]

    def test_plain_text_has_no_table(self):
        check = check_table_structure(parse_artifact("just some words"))

        assert check.found is False
        assert check.suggestions == ["You might want to include a data table."]


class TestImages:
    def test_scatter_plot(self, rubric):
        result = evaluate_text(f'<div>{FULL_TABLE}<img src="graphs/scatter-results.png"></div>', rubric)

        assert result.image_level == 8

    def test_bar_chart(self):
        level, suggestions = image_level(FilenameGraphClassifier().classify("bar_chart.png"))

        assert level == 6
        assert suggestions == ["Add a title to your graph.", "Scatter plot is preferred for Level 7-8."]

    def test_not_a_graph(self, rubric):
        result = evaluate_text('<div><img src="photo.jpg"></div>', rubric)

        assert result.image_level == 0
        assert "Image found, but it's not recognized as a graph." in result.suggestions

    def test_other_graph_type(self):
        info = GraphInfo(is_graph=True, graph_type=GraphType.UNKNOWN, axes_labeled=False, has_title=True)

        assert image_level(info) == (4, ["Add axis labels to your graph."])

    def test_only_first_image_used(self, rubric):
        result = evaluate_text('<div><img src="photo.jpg"><img src="scatter.png"></div>', rubric)

        assert result.image_level == 0


class TestSuggestions:
    def test_filler_up_to_three(self):
        rubric = StrandRubric.model_validate({
            "suggestions": ["Describe your method.", "Compare with theory.", "State a conclusion.", "Extra."],
        })

        result = evaluate_text(FULL_TABLE, rubric)

        assert result.suggestions == ["Describe your method.", "Compare with theory.", "State a conclusion."]

    def test_capped_at_five(self, rubric):
        text = '<div><table><tr><td>1</td></tr></table><img src="photo.jpg"></div>'

        result = evaluate_text(text, rubric)

        assert len(result.suggestions) == 5
        assert result.suggestions[0] == "Try adding at least 3 rows of data."

    def test_no_gap_suggestion_at_top_level(self, rubric):
        result = evaluate_text(FULL_TABLE + " critical angle total internal reflection", rubric)

        assert not any("reach level" in s for s in result.suggestions)


class TestRubricEvaluator:
    def test_uses_book(self, rubric):
        book = RubricBook(paths={"critical-angle": {"strand2": rubric}})
        result = RubricEvaluator(book).evaluate("Light bends.", "critical-angle", 2)

        assert result.keyword_level == 2

    def test_missing_rubric(self, rubric):
        book = RubricBook(paths={"critical-angle": {"strand2": rubric}})
        result = RubricEvaluator(book).evaluate("Light bends.", "critical-angle", 3)

        assert result.level == 0
        assert result.suggestions == [NO_RUBRIC_SUGGESTION]
