"""Tests for the grade arithmetic: parsing, letter scales, averages and projections."""

import pytest

from gradetrack.core.enums import GradeType, NeededOutcome
from gradetrack.core.exceptions import ValidationError
from gradetrack.core.grading import (
    DEFAULT_LETTER_THRESHOLDS,
    GradeEntry,
    LetterThreshold,
    calculate,
    classify_needed,
    final_exam_needed,
    is_blank,
    letter_to_percent,
    needed_grade,
    parse_number,
    resolve_grade_value,
    resolve_letter,
    validate_thresholds,
    weighted_average,
)

DEFAULT_LETTERS = [t.letter for t in DEFAULT_LETTER_THRESHOLDS]


# ─── PARSING ──────────────────────────────────────────────────────────────────

class TestParsing:
    def test_plain_numbers(self):
        assert parse_number("85") == 85.0
        assert parse_number(" 72.5 ") == 72.5
        assert parse_number(90) == 90.0

    def test_trailing_percent_sign(self):
        assert parse_number("85%") == 85.0

    def test_rejects_garbage(self):
        """Text, blanks, booleans and non-finite values are not numbers."""
        for value in ("abc", "", "   ", None, True, "nan", "inf", float("inf")):
            assert parse_number(value) is None

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("  ")
        assert not is_blank("0")
        assert not is_blank(0)

    def test_points_accept_fraction(self):
        assert resolve_grade_value("45/50", GradeType.POINTS) == pytest.approx(90.0)
        assert resolve_grade_value("45/0", GradeType.POINTS) is None

    def test_letters_resolve_through_table(self):
        assert resolve_grade_value("b+", GradeType.LETTERS) == 87.0
        assert resolve_grade_value("Z", GradeType.LETTERS) == 0.0
        assert resolve_grade_value("  ", GradeType.LETTERS) is None


# ─── LETTER SCALE ─────────────────────────────────────────────────────────────

class TestResolveLetter:
    @pytest.mark.parametrize("percent,letter", [
        (100, "A+"), (97, "A+"), (96.99, "A"), (93, "A"), (90, "A-"),
        (87, "B+"), (83, "B"), (80, "B-"), (77, "C+"), (73, "C"),
        (70, "C-"), (67, "D+"), (63, "D"), (60, "D-"), (59.99, "F"), (0, "F"),
    ])
    def test_default_boundaries(self, percent, letter):
        assert resolve_letter(percent) == letter

    def test_out_of_range_is_not_clamped(self):
        """Projections beyond 0-100 still map onto the ends of the scale."""
        assert resolve_letter(140) == "A+"
        assert resolve_letter(-25) == "F"

    def test_total_and_monotone(self):
        """Every percentage gets one letter and letters never improve as the percentage drops."""
        previous_rank = len(DEFAULT_LETTERS) - 1
        for step in range(-20, 241):
            letter = resolve_letter(step / 2)
            assert letter in DEFAULT_LETTERS
            rank = DEFAULT_LETTERS.index(letter)
            assert rank <= previous_rank
            previous_rank = rank

    def test_custom_scale_in_any_order(self):
        scale = [LetterThreshold(0, "F"), LetterThreshold(85, "A"), LetterThreshold(70, "B")]
        assert resolve_letter(86, scale) == "A"
        assert resolve_letter(84, scale) == "B"
        assert resolve_letter(10, scale) == "F"

    def test_scale_without_floor_falls_back_to_lowest_letter(self):
        scale = [LetterThreshold(90, "A"), LetterThreshold(50, "C")]
        assert resolve_letter(20, scale) == "C"


class TestLetterToPercent:
    def test_case_and_whitespace_insensitive(self):
        assert letter_to_percent(" b+ ") == 87.0
        assert letter_to_percent("A") == 93.0

    def test_floor_letter_is_fifty(self):
        assert letter_to_percent("F") == 50.0

    def test_unknown_letter(self):
        assert letter_to_percent("E") is None
        assert letter_to_percent(None) is None


class TestLetterRoundTrip:
    def test_exact_on_default_scale(self):
        """Midpoints sit on the default cutoffs, so the default scale gives the letter back."""
        for letter in DEFAULT_LETTERS:
            assert resolve_letter(letter_to_percent(letter)) == letter

    def test_lossy_on_custom_scale_within_one_step(self):
        """On a custom scale the midpoint can land one letter off; no further."""
        scale = validate_thresholds([
            {"min_percent": 95, "letter": "A"},
            {"min_percent": 85, "letter": "B"},
            {"min_percent": 75, "letter": "C"},
            {"min_percent": 65, "letter": "D"},
            {"min_percent": 0, "letter": "F"},
        ])
        letters = [t.letter for t in scale]
        assert resolve_letter(letter_to_percent("B"), scale) == "C"
        for letter in letters:
            result = resolve_letter(letter_to_percent(letter), scale)
            assert abs(letters.index(result) - letters.index(letter)) <= 1


class TestValidateThresholds:
    def test_accepts_default_scale(self):
        assert validate_thresholds(DEFAULT_LETTER_THRESHOLDS) == DEFAULT_LETTER_THRESHOLDS

    def test_accepts_dicts_and_legacy_min_key(self):
        scale = validate_thresholds([{"min": 90, "letter": "A"}, {"min_percent": "0", "letter": "F"}])
        assert scale == [LetterThreshold(90.0, "A"), LetterThreshold(0.0, "F")]

    @pytest.mark.parametrize("scale", [
        [],
        [{"min_percent": 80, "letter": "B"}, {"min_percent": 90, "letter": "A"}, {"min_percent": 0, "letter": "F"}],
        [{"min_percent": 90, "letter": "A"}, {"min_percent": 90, "letter": "B"}, {"min_percent": 0, "letter": "F"}],
        [{"min_percent": 90, "letter": "A"}, {"min_percent": 10, "letter": "F"}],
        [{"min_percent": 90, "letter": "A"}, {"min_percent": 0, "letter": "D"}],
        [{"min_percent": 120, "letter": "A"}, {"min_percent": 0, "letter": "F"}],
        [{"min_percent": 90, "letter": "A"}, {"min_percent": 50, "letter": "a"}, {"min_percent": 0, "letter": "F"}],
        [{"min_percent": 90, "letter": " "}, {"min_percent": 0, "letter": "F"}],
        [{"min_percent": "high", "letter": "A"}, {"min_percent": 0, "letter": "F"}],
    ])
    def test_rejects_invalid_scales(self, scale):
        with pytest.raises(ValidationError):
            validate_thresholds(scale)


# ─── WEIGHTED AVERAGE ─────────────────────────────────────────────────────────

class TestWeightedAverage:
    def test_empty_is_none(self):
        assert weighted_average([]) is None

    def test_zero_weight_only_is_none(self):
        assert weighted_average([GradeEntry(90, 0)]) is None

    def test_even_split(self):
        result = weighted_average([GradeEntry(80, 50), GradeEntry(100, 50)])
        assert result.average == 90
        assert result.total_weight == 100

    def test_non_positive_and_unparsable_weights_are_skipped(self):
        result = weighted_average([GradeEntry(80, 50), GradeEntry(10, -20), GradeEntry(10, "heavy")])
        assert result.average == 80
        assert result.total_weight == 50

    def test_unparsable_grade_is_excluded_not_zeroed(self):
        result = weighted_average([GradeEntry("90", "50"), GradeEntry("n/a", "50")])
        assert result.average == 90
        assert result.total_weight == 50

    def test_unknown_letter_counts_as_zero(self):
        result = weighted_average([GradeEntry("A", 50), GradeEntry("Z", 50)], GradeType.LETTERS)
        assert result.average == pytest.approx(46.5)

    def test_blank_letter_is_excluded(self):
        result = weighted_average([GradeEntry("A", 50), GradeEntry("", 50)], GradeType.LETTERS)
        assert result.average == 93
        assert result.total_weight == 50

    def test_overall_percent_treats_ungraded_as_zero(self):
        result = weighted_average([GradeEntry(80, 50)])
        assert result.average == 80
        assert result.overall_percent == pytest.approx(40.0)


# ─── TARGET PROJECTION ────────────────────────────────────────────────────────

class TestNeededGrade:
    def test_no_remaining_weight(self):
        assert needed_grade(90, 100, 80) is None
        assert needed_grade(90, 120, 80) is None

    def test_exactly_one_hundred_needed(self):
        needed = needed_grade(70, 50, 85)
        assert needed == pytest.approx(100)
        assert classify_needed(needed) == NeededOutcome.ACHIEVABLE

    def test_achievable(self):
        needed = needed_grade(95, 50, 80)
        assert needed == pytest.approx(65)
        assert classify_needed(needed) == NeededOutcome.ACHIEVABLE

    def test_unreachable_and_already_met(self):
        assert classify_needed(needed_grade(50, 80, 95)) == NeededOutcome.UNREACHABLE
        assert classify_needed(needed_grade(100, 90, 80)) == NeededOutcome.ALREADY_MET

    def test_zero_is_achievable(self):
        assert classify_needed(0) == NeededOutcome.ACHIEVABLE


class TestFinalExamNeeded:
    def test_needed_on_final(self):
        result = final_exam_needed("85", "40", "90")
        assert result.needed_grade == pytest.approx(97.5)
        assert result.letter_grade == "A+"
        assert result.is_possible

    def test_final_worth_everything(self):
        result = final_exam_needed(60, 100, 75)
        assert result.needed_grade == pytest.approx(75)

    @pytest.mark.parametrize("current,weight,target", [
        ("abc", 40, 90), (85, "", 90), (85, 40, None), (85, 0, 90), (85, 101, 90), (85, -5, 90),
    ])
    def test_rejected_inputs(self, current, weight, target):
        assert final_exam_needed(current, weight, target) is None

    def test_out_of_reach(self):
        result = final_exam_needed(50, 20, 95)
        assert result.outcome == NeededOutcome.UNREACHABLE
        assert not result.is_possible


class TestCalculate:
    def test_no_scored_rows(self):
        assert calculate([GradeEntry("", 40)]) is None

    def test_full_result(self):
        result = calculate([GradeEntry("90", "30"), GradeEntry("80", "20"), GradeEntry("", "50")], target=80)
        assert result.average_on_graded_work == pytest.approx(86)
        assert result.average_letter == "B"
        assert result.overall_percent_including_ungraded == pytest.approx(43)
        assert result.overall_letter == "F"
        assert result.total_weight_consumed == 50
        assert result.remaining_weight == 50
        assert result.needed_grade_on_remainder == pytest.approx(74)
        assert result.needed_outcome == NeededOutcome.ACHIEVABLE

    def test_fully_weighted_course_has_no_projection(self):
        result = calculate([GradeEntry(88, 100)])
        assert result.needed_grade_on_remainder is None
        assert result.needed_outcome is None
        assert result.to_dict()["needed_outcome"] is None

    def test_custom_scale_drives_letters(self):
        scale = [LetterThreshold(85, "A"), LetterThreshold(0, "F")]
        result = calculate([GradeEntry(86, 100)], thresholds=scale)
        assert result.average_letter == "A"
