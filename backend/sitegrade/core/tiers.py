from typing import Dict, Iterable, List, Tuple, Union
from sitegrade.core.errors import InvalidConfigurationError
from sitegrade.models.schemas import ScanDepth

CHECK_ORDER: Tuple[str, ...] = ("ssl", "headers", "virusTotal", "safeBrowsing", "observatory")

# each tier runs everything the tier below it runs
TIER_CHECKS: Dict[ScanDepth, Tuple[str, ...]] = {
    ScanDepth.BASIC: ("ssl", "headers"),
    ScanDepth.ADVANCED: ("ssl", "headers", "virusTotal", "safeBrowsing"),
    ScanDepth.FULL: ("ssl", "headers", "virusTotal", "safeBrowsing", "observatory"),
}

TEST_NAMES: Dict[str, str] = {
    "ssl": "SSL Certificate Analysis",
    "headers": "Security Headers Check",
    "virusTotal": "Malware Detection (VirusTotal)",
    "safeBrowsing": "Google Safe Browsing Check",
    "observatory": "Mozilla Observatory Comprehensive Analysis",
}


def resolve_depth(depth: Union[ScanDepth, str]) -> ScanDepth:
    if isinstance(depth, ScanDepth):
        return depth
    try:
        return ScanDepth(depth)
    except ValueError:
        allowed = ", ".join(d.value for d in ScanDepth)
        raise InvalidConfigurationError(
            f"Unknown scan depth {depth!r}; expected one of: {allowed}", value=depth
        ) from None


def select_checks(depth: Union[ScanDepth, str]) -> Tuple[str, ...]:
    return TIER_CHECKS[resolve_depth(depth)]


def tests_for(checks: Iterable[str]) -> List[str]:
    """Display names for the given check ids, in check order."""
    present = set(checks)
    return [TEST_NAMES[key] for key in CHECK_ORDER if key in present]


def tests_performed(depth: Union[ScanDepth, str]) -> List[str]:
    return tests_for(select_checks(depth))
