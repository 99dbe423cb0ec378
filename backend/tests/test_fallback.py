import random
import pytest
from sitegrade.core.fallback import fallback_score, generate_fallback
from sitegrade.core.scoring import grade_for
from sitegrade.core.tiers import tests_performed
from sitegrade.models.schemas import ScanDepth


def test_seeded_fallback_is_reproducible():
    a = generate_fallback("https://example.com", "full", rng=random.Random(7))
    b = generate_fallback("https://example.com", "full", rng=random.Random(7))
    assert a.overall_score == b.overall_score


@pytest.mark.parametrize("depth,low,high", [
    (ScanDepth.BASIC, 60, 88),
    (ScanDepth.ADVANCED, 40, 79),
    (ScanDepth.FULL, 30, 79),
])
def test_fallback_score_bounds(depth, low, high):
    rng = random.Random(1234)
    scores = [fallback_score(depth, rng) for _ in range(500)]
    assert min(scores) >= low
    assert max(scores) <= high


@pytest.mark.parametrize("depth,counts", [
    ("basic", (1, 1, 2)),
    ("advanced", (3, 3, 4)),
    ("full", (5, 5, 6)),
])
def test_fallback_report_shape(depth, counts):
    report = generate_fallback("https://example.com/login", depth, rng=random.Random(0))
    assert report.fallback is True
    assert report.hostname == "example.com"
    assert report.grade == grade_for(report.overall_score)
    assert report.tests_performed == tests_performed(depth)
    assert report.checks == {}
    assert (len(report.vulnerabilities), len(report.recommendations), len(report.details)) == counts


def test_fallback_tiers_are_cumulative():
    titles = {
        d: [v.title for v in generate_fallback("https://example.com", d, rng=random.Random(0)).vulnerabilities]
        for d in ("basic", "advanced", "full")
    }
    assert titles["advanced"][:1] == titles["basic"]
    assert titles["full"][:3] == titles["advanced"]
    assert titles["full"][-1] == "Insecure Cookie Configuration"


def test_fallback_carries_error_and_duration():
    report = generate_fallback("https://example.com", "advanced", error="provider exploded")
    assert report.error == "provider exploded"
    assert report.scan_duration == "57 seconds"
    dumped = report.model_dump(by_alias=True)
    assert dumped["fallback"] is True
    assert dumped["scanDepth"] == ScanDepth.ADVANCED


def test_fallback_never_raises_on_bad_input():
    report = generate_fallback("not a url", "nonsense")
    assert report.scan_depth is ScanDepth.BASIC
    assert report.hostname is None
    assert report.fallback is True
