import logging
import random
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union
from urllib.parse import urlsplit
from sitegrade.core.scoring import grade_for
from sitegrade.core.tiers import TIER_CHECKS, tests_for
from sitegrade.models.schemas import Detail, Recommendation, Report, ScanDepth, Vulnerability

logger = logging.getLogger(__name__)

SCAN_DURATIONS: Dict[ScanDepth, str] = {
    ScanDepth.BASIC: "28 seconds",
    ScanDepth.ADVANCED: "57 seconds",
    ScanDepth.FULL: "86 seconds",
}

# score floors after the depth adjustment
SCORE_FLOORS: Dict[ScanDepth, int] = {
    ScanDepth.ADVANCED: 40,
    ScanDepth.FULL: 30,
}

# ---------- Canned findings, one block per tier ----------
# Each tier shows its own block plus every block below it.
_VULNERABILITIES: Dict[ScanDepth, List[dict]] = {
    ScanDepth.BASIC: [
        dict(severity="medium", title="Missing Security Headers",
             description="Your website is missing important security headers like Content-Security-Policy.",
             category="HTTP Headers", source="Basic Scan"),
    ],
    ScanDepth.ADVANCED: [
        dict(severity="high", title="Weak SSL Configuration",
             description="SSL certificate is using weak cipher suites or outdated protocols.",
             category="SSL/TLS", source="Advanced Scan"),
        dict(severity="medium", title="Potential Malware Exposure",
             description="Some resources may contain or link to suspicious content.",
             category="Malware", source="VirusTotal"),
    ],
    ScanDepth.FULL: [
        dict(severity="critical", title="Content Security Policy Issues",
             description="Missing or ineffective Content Security Policy detected.",
             category="Content Security", source="Mozilla Observatory"),
        dict(severity="high", title="Insecure Cookie Configuration",
             description="Cookies are not properly secured with HttpOnly and Secure flags.",
             category="Cookie Security", source="Mozilla Observatory"),
    ],
}

_RECOMMENDATIONS: Dict[ScanDepth, List[dict]] = {
    ScanDepth.BASIC: [
        dict(priority="high", title="Implement Security Headers",
             description="Add essential security headers to protect against common attacks.",
             steps=["Add Content-Security-Policy header",
                    "Implement X-Frame-Options: DENY",
                    "Set Strict-Transport-Security header"],
             link="https://developer.mozilla.org/en-US/docs/Web/HTTP/Headers"),
    ],
    ScanDepth.ADVANCED: [
        dict(priority="high", title="Strengthen SSL Configuration",
             description="Upgrade your SSL/TLS configuration for better security.",
             steps=["Disable TLS 1.0 and 1.1",
                    "Enable TLS 1.3 if supported",
                    "Update cipher suites to strong variants",
                    "Implement certificate pinning"],
             link="https://ssl-config.mozilla.org/"),
        dict(priority="medium", title="Implement Malware Scanning",
             description="Add regular malware scanning to detect threats.",
             steps=["Set up automated malware scanning",
                    "Monitor for suspicious files",
                    "Configure alerts for detected threats",
                    "Review third-party scripts regularly"],
             link="https://www.virustotal.com/"),
    ],
    ScanDepth.FULL: [
        dict(priority="critical", title="Implement Content Security Policy",
             description="Add a strong Content Security Policy to prevent XSS attacks.",
             steps=["Create a strict CSP header",
                    "Avoid unsafe-inline when possible",
                    "Use nonces or hashes for inline scripts",
                    "Test CSP in report-only mode first"],
             link="https://developer.mozilla.org/en-US/docs/Web/HTTP/CSP"),
        dict(priority="high", title="Secure Cookie Configuration",
             description="Improve cookie security to prevent session hijacking.",
             steps=["Add HttpOnly flag to all cookies",
                    "Set Secure flag for HTTPS cookies",
                    "Implement SameSite=Strict or Lax",
                    "Set appropriate expiration times"],
             link="https://owasp.org/www-community/controls/SecureCookieAttribute"),
    ],
}

_DETAILS: Dict[ScanDepth, List[dict]] = {
    ScanDepth.BASIC: [
        dict(category="SSL Certificate", description="Certificate is valid and properly configured",
             status="pass", source="SSL Check"),
        dict(category="HTTP Security Headers", description="Missing critical security headers",
             status="fail", source="Header Analysis"),
    ],
    ScanDepth.ADVANCED: [
        dict(category="Malware Detection", description="No malware signatures detected",
             status="pass", source="VirusTotal"),
        dict(category="Safe Browsing Check", description="Site is not flagged by Google Safe Browsing",
             status="pass", source="Google Safe Browsing"),
    ],
    ScanDepth.FULL: [
        dict(category="Content Security Policy", description="CSP implemented but has potential bypass vectors",
             status="warning", source="Mozilla Observatory"),
        dict(category="Cookie Security", description="Cookies lack proper security attributes",
             status="fail", source="Mozilla Observatory"),
    ],
}

_TIER_ORDER = (ScanDepth.BASIC, ScanDepth.ADVANCED, ScanDepth.FULL)


def _tiers_up_to(depth: ScanDepth) -> List[ScanDepth]:
    return list(_TIER_ORDER[: _TIER_ORDER.index(depth) + 1])


def _canned(table: Dict[ScanDepth, List[dict]], model, depth: ScanDepth) -> list:
    return [model(**entry) for tier in _tiers_up_to(depth) for entry in table[tier]]


def fallback_score(depth: ScanDepth, rng: random.Random) -> int:
    base = rng.randrange(60, 80)
    if depth is ScanDepth.BASIC:
        return min(100, base + rng.randrange(0, 10))
    if depth is ScanDepth.ADVANCED:
        return max(SCORE_FLOORS[depth], base - rng.randrange(0, 15))
    return max(SCORE_FLOORS[depth], base - rng.randrange(0, 25))


def _hostname(url: str) -> Optional[str]:
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


def _coerce_depth(depth: Union[ScanDepth, str]) -> ScanDepth:
    try:
        return ScanDepth(depth)
    except ValueError:
        logger.warning("Fallback report requested for unknown depth %r; using basic content", depth)
        return ScanDepth.BASIC


def generate_fallback(
    url: str,
    depth: Union[ScanDepth, str],
    rng: Optional[random.Random] = None,
    error: Optional[str] = None,
) -> Report:
    """
    Build a synthetic report without touching the network.

    Used when the real scan pipeline raises. The result is flagged
    `fallback=True` so consumers can disclose degraded operation. Pass a
    seeded `rng` for reproducible scores.
    """
    rng = rng or random.Random()
    depth = _coerce_depth(depth)
    overall = fallback_score(depth, rng)
    return Report(
        url=url,
        hostname=_hostname(url),
        timestamp=utc_timestamp(),
        scan_depth=depth,
        overall_score=overall,
        grade=grade_for(overall),
        vulnerabilities=_canned(_VULNERABILITIES, Vulnerability, depth),
        recommendations=_canned(_RECOMMENDATIONS, Recommendation, depth),
        details=_canned(_DETAILS, Detail, depth),
        tests_performed=tests_for(TIER_CHECKS[depth]),
        scan_duration=SCAN_DURATIONS[depth],
        fallback=True,
        error=error,
    )


def utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
