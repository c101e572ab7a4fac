"""
Grade arithmetic: letter scales, weighted averages and target projections.

Every function here is pure. Malformed input never raises; it is skipped or
defaulted as documented on each function, and "nothing to compute" is
reported as ``None`` rather than zero.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .enums import GradeType, NeededOutcome
from .exceptions import ValidationError


Number = Union[int, float]
RawValue = Union[str, int, float, None]


@dataclass(frozen=True)
class LetterThreshold:
    """Minimum percentage needed for a letter grade."""
    min_percent: float
    letter: str

    def to_dict(self) -> Dict[str, Any]:
        return {'min_percent': self.min_percent, 'letter': self.letter}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'LetterThreshold':
        # stored scales written by older clients use "min"
        min_percent = data.get('min_percent', data.get('min'))
        return cls(min_percent=min_percent, letter=data.get('letter'))


DEFAULT_LETTER_THRESHOLDS: List[LetterThreshold] = [
    LetterThreshold(97, 'A+'),
    LetterThreshold(93, 'A'),
    LetterThreshold(90, 'A-'),
    LetterThreshold(87, 'B+'),
    LetterThreshold(83, 'B'),
    LetterThreshold(80, 'B-'),
    LetterThreshold(77, 'C+'),
    LetterThreshold(73, 'C'),
    LetterThreshold(70, 'C-'),
    LetterThreshold(67, 'D+'),
    LetterThreshold(63, 'D'),
    LetterThreshold(60, 'D-'),
    LetterThreshold(0, 'F'),
]

# Representative percentage for a letter entered as a grade.
LETTER_GRADE_PERCENTAGES: Dict[str, float] = {
    'A+': 97,
    'A': 93,
    'A-': 90,
    'B+': 87,
    'B': 83,
    'B-': 80,
    'C+': 77,
    'C': 73,
    'C-': 70,
    'D+': 67,
    'D': 63,
    'D-': 60,
    'F': 50,
}

FLOOR_LETTER = 'F'


@dataclass(frozen=True)
class GradeEntry:
    """One row of a grade table: a raw grade cell and a raw weight cell."""
    grade: RawValue
    weight: RawValue


@dataclass(frozen=True)
class WeightedAverage:
    """Aggregate of the rows that carried a usable grade and weight."""
    average: float
    total_weight: float
    weighted_sum: float

    @property
    def overall_percent(self) -> float:
        """Course percentage so far when ungraded weight counts as zero."""
        return self.weighted_sum / 100


@dataclass(frozen=True)
class FinalExamResult:
    """Outcome of the single final-exam calculator."""
    needed_grade: float
    letter_grade: str
    outcome: NeededOutcome

    @property
    def is_possible(self) -> bool:
        return self.outcome == NeededOutcome.ACHIEVABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'needed_grade': self.needed_grade,
            'letter_grade': self.letter_grade,
            'outcome': self.outcome.value,
            'is_possible': self.is_possible,
        }


@dataclass(frozen=True)
class CalculationResult:
    """Everything the grade table shows after a calculation.

    ``average_on_graded_work`` only reflects graded rows, while
    ``overall_percent_including_ungraded`` treats the remaining weight as zero.
    """
    average_on_graded_work: float
    average_letter: str
    overall_percent_including_ungraded: float
    overall_letter: str
    total_weight_consumed: float
    remaining_weight: float
    needed_grade_on_remainder: Optional[float]
    needed_outcome: Optional[NeededOutcome]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'average_on_graded_work': self.average_on_graded_work,
            'average_letter': self.average_letter,
            'overall_percent_including_ungraded': self.overall_percent_including_ungraded,
            'overall_letter': self.overall_letter,
            'total_weight_consumed': self.total_weight_consumed,
            'remaining_weight': self.remaining_weight,
            'needed_grade_on_remainder': self.needed_grade_on_remainder,
            'needed_outcome': self.needed_outcome.value if self.needed_outcome else None,
        }


# ─── Parsing ──────────────────────────────────────────────────────────────────

def is_blank(value: RawValue) -> bool:
    """True for a missing or whitespace-only cell."""
    return value is None or (isinstance(value, str) and not value.strip())


def parse_number(value: RawValue) -> Optional[float]:
    """Parse a numeric cell, returning None for anything that is not a finite number.

    A trailing percent sign is accepted ("85%").
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if text.endswith('%'):
            text = text[:-1].strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def _parse_fraction(text: str) -> Optional[float]:
    """Parse "earned/total" into a percentage."""
    earned_text, _, total_text = text.partition('/')
    earned = parse_number(earned_text)
    total = parse_number(total_text)
    if earned is None or total is None or total <= 0:
        return None
    return earned / total * 100


def resolve_grade_value(raw: RawValue, grade_type: GradeType = GradeType.PERCENTAGE) -> Optional[float]:
    """Turn a raw grade cell into a percentage.

    Blank cells resolve to None for every grade type. Under ``letters`` a
    non-blank letter outside the table counts as 0; a number that was already
    converted before storage is taken as is. Under ``percentage`` and
    ``points`` an unparsable value resolves to None, and ``points`` also
    accepts ``earned/total``.
    """
    if is_blank(raw):
        return None
    if grade_type == GradeType.LETTERS:
        if isinstance(raw, str):
            percent = letter_to_percent(raw)
            return percent if percent is not None else 0.0
        return parse_number(raw)
    if grade_type == GradeType.POINTS and isinstance(raw, str) and '/' in raw:
        return _parse_fraction(raw)
    return parse_number(raw)


# ─── Letter scale ─────────────────────────────────────────────────────────────

def letter_to_percent(letter: str) -> Optional[float]:
    """Representative percentage for a letter, or None when the letter is unknown."""
    if letter is None:
        return None
    percent = LETTER_GRADE_PERCENTAGES.get(str(letter).strip().upper())
    return float(percent) if percent is not None else None


def resolve_letter(percent: Number, thresholds: Optional[Sequence[LetterThreshold]] = None) -> str:
    """Letter of the highest threshold that ``percent`` meets.

    ``percent`` is not clamped, so projections above 100 or below 0 still map
    to the top or bottom letter.
    """
    scale = sorted(thresholds or DEFAULT_LETTER_THRESHOLDS, key=lambda t: t.min_percent, reverse=True)
    for threshold in scale:
        if percent >= threshold.min_percent:
            return threshold.letter
    return scale[-1].letter if scale else FLOOR_LETTER


def validate_thresholds(thresholds: Iterable[Union[LetterThreshold, Mapping[str, Any]]]) -> List[LetterThreshold]:
    """Validate a custom letter scale and return it normalised.

    The scale must be strictly descending, stay within 0-100, use each letter
    once and end with an ``F`` floor at 0.
    """
    scale: List[LetterThreshold] = []
    for item in thresholds:
        threshold = item if isinstance(item, LetterThreshold) else LetterThreshold.from_dict(item)
        letter = (threshold.letter or '').strip() if isinstance(threshold.letter, str) else ''
        if not letter:
            raise ValidationError("Letter grade thresholds need a letter for every entry")
        min_percent = parse_number(threshold.min_percent)
        if min_percent is None or not 0 <= min_percent <= 100:
            raise ValidationError(
                f"Threshold for {letter} must be a number between 0 and 100",
                details={'letter': letter, 'min_percent': threshold.min_percent}
            )
        scale.append(LetterThreshold(min_percent=min_percent, letter=letter))

    if not scale:
        raise ValidationError("Letter grade scale cannot be empty")

    letters = [t.letter.upper() for t in scale]
    if len(set(letters)) != len(letters):
        raise ValidationError("Letter grade scale lists a letter more than once")

    for previous, current in zip(scale, scale[1:]):
        if current.min_percent >= previous.min_percent:
            raise ValidationError(
                f"Thresholds must be in descending order ({previous.letter} > {current.letter})"
            )

    floor = scale[-1]
    if floor.letter.upper() != FLOOR_LETTER or floor.min_percent != 0:
        raise ValidationError("Letter grade scale must end with F at 0")

    return scale


# ─── Weighted average ─────────────────────────────────────────────────────────

def weighted_average(entries: Iterable[GradeEntry],
                     grade_type: GradeType = GradeType.PERCENTAGE) -> Optional[WeightedAverage]:
    """Weighted mean over the rows that have a positive weight and a usable grade."""
    weighted_sum = 0.0
    total_weight = 0.0

    for entry in entries:
        weight = parse_number(entry.weight)
        if weight is None or weight <= 0:
            continue
        grade = resolve_grade_value(entry.grade, grade_type)
        if grade is None:
            continue
        weighted_sum += grade * weight
        total_weight += weight

    if total_weight == 0:
        return None

    return WeightedAverage(
        average=weighted_sum / total_weight,
        total_weight=total_weight,
        weighted_sum=weighted_sum
    )


# ─── Target projection ────────────────────────────────────────────────────────

def needed_grade(current_average: Number, current_weight: Number, target_overall: Number) -> Optional[float]:
    """Grade needed on the remaining weight to finish at ``target_overall``.

    Returns None when no weight remains. The result is not clamped: above 100
    means the target is out of reach, below 0 means it is already secured.
    """
    remaining_weight = 100 - current_weight
    if remaining_weight <= 0:
        return None
    return (target_overall * 100 - current_average * current_weight) / remaining_weight


def classify_needed(value: Number) -> NeededOutcome:
    if value > 100:
        return NeededOutcome.UNREACHABLE
    if value < 0:
        return NeededOutcome.ALREADY_MET
    return NeededOutcome.ACHIEVABLE


def final_exam_needed(current_grade: RawValue, final_weight: RawValue, target_grade: RawValue,
                      thresholds: Optional[Sequence[LetterThreshold]] = None) -> Optional[FinalExamResult]:
    """Score needed on a final exam worth ``final_weight`` percent of the course."""
    current = parse_number(current_grade)
    weight = parse_number(final_weight)
    target = parse_number(target_grade)
    if current is None or weight is None or target is None:
        return None
    if weight <= 0 or weight > 100:
        return None

    needed = needed_grade(current, 100 - weight, target)
    return FinalExamResult(
        needed_grade=needed,
        letter_grade=resolve_letter(needed, thresholds),
        outcome=classify_needed(needed)
    )


def calculate(entries: Iterable[GradeEntry], grade_type: GradeType = GradeType.PERCENTAGE,
              target: Number = 80, thresholds: Optional[Sequence[LetterThreshold]] = None) -> Optional[CalculationResult]:
    """Full grade-table calculation, or None when no row can be scored."""
    aggregate = weighted_average(entries, grade_type)
    if aggregate is None:
        return None

    remaining_weight = 100 - aggregate.total_weight
    needed = needed_grade(aggregate.average, aggregate.total_weight, target)

    return CalculationResult(
        average_on_graded_work=aggregate.average,
        average_letter=resolve_letter(aggregate.average, thresholds),
        overall_percent_including_ungraded=aggregate.overall_percent,
        overall_letter=resolve_letter(aggregate.overall_percent, thresholds),
        total_weight_consumed=aggregate.total_weight,
        remaining_weight=remaining_weight,
        needed_grade_on_remainder=needed,
        needed_outcome=classify_needed(needed) if needed is not None else None
    )
