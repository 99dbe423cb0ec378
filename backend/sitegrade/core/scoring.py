from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional, Tuple, Union
from sitegrade.core.tiers import CHECK_ORDER, select_checks
from sitegrade.models.schemas import (
    CheckResult,
    CheckResultMap,
    HeadersResult,
    ObservatoryResult,
    SafeBrowsingResult,
    ScanDepth,
    SSLResult,
    VirusTotalResult,
)

WEIGHTS: Dict[str, Decimal] = {
    "ssl": Decimal("0.30"),
    "headers": Decimal("0.30"),
    "virusTotal": Decimal("0.15"),
    "safeBrowsing": Decimal("0.15"),
    "observatory": Decimal("0.20"),
}

# letter grade (SSL Labs / SecurityHeaders) -> raw 0..100
GRADE_SCORES: Dict[str, int] = {
    "A+": 100, "A": 95, "A-": 90,
    "B+": 85, "B": 80, "B-": 75,
    "C+": 70, "C": 65, "C-": 60,
    "D+": 55, "D": 50, "D-": 45,
    "F": 25, "ERROR": 0, "N/A": 50,
}

# overall score -> letter grade, highest first
GRADE_THRESHOLDS: Tuple[Tuple[int, str], ...] = (
    (97, "A+"), (93, "A"), (90, "A-"),
    (87, "B+"), (83, "B"), (80, "B-"),
    (77, "C+"), (73, "C"), (70, "C-"),
    (67, "D+"), (63, "D"), (60, "D-"),
)


def grade_to_score(grade: Optional[str]) -> int:
    return GRADE_SCORES.get(grade or "", 0)


def grade_for(score: Union[int, float]) -> str:
    for floor, letter in GRADE_THRESHOLDS:
        if score >= floor:
            return letter
    return "F"


def raw_score(result: CheckResult) -> int:
    if isinstance(result, (SSLResult, HeadersResult)):
        return grade_to_score(result.grade)
    if isinstance(result, VirusTotalResult):
        if result.clean:
            return 100
        return max(0, 100 - result.detections * 10)
    if isinstance(result, SafeBrowsingResult):
        return 100 if result.safe else 0
    if isinstance(result, ObservatoryResult):
        # Observatory scores run roughly -100..+100 (bonuses can push past 100)
        return max(0, result.score + 100)
    raise TypeError(f"Unsupported check result: {type(result).__name__}")


def score(results: CheckResultMap, depth: Union[ScanDepth, str]) -> int:
    """
    Weighted average of the per-check raw scores.

    Only checks that are both selected for `depth` and present in `results`
    contribute, and the average is normalized by their combined weight, so a
    basic scan is judged on ssl+headers alone at full weight.
    """
    selected = select_checks(depth)
    total = Decimal(0)
    total_weight = Decimal(0)
    for key in CHECK_ORDER:
        result = results.get(key)
        if result is None or key not in selected:
            continue
        weight = WEIGHTS[key]
        total += weight * raw_score(result)
        total_weight += weight
    if not total_weight:
        return 0
    overall = int((total / total_weight).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return max(0, min(100, overall))
