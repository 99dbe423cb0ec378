from typing import Union
from sitegrade.core.tiers import CHECK_ORDER, select_checks
from sitegrade.models.schemas import (
    CheckResultMap,
    Detail,
    Findings,
    HeadersResult,
    ObservatoryResult,
    Recommendation,
    SafeBrowsingResult,
    ScanDepth,
    SSLResult,
    VirusTotalResult,
    Vulnerability,
)

CRITICAL_HEADERS = ("Content-Security-Policy", "X-Frame-Options")
HIGH_HEADERS = ("Strict-Transport-Security", "X-Content-Type-Options")


def severity_for_header(header: str) -> str:
    if header in CRITICAL_HEADERS:
        return "critical"
    if header in HIGH_HEADERS:
        return "high"
    return "medium"


def _grade_status(grade) -> str:
    if grade in ("A+", "A"):
        return "pass"
    if grade == "F":
        return "fail"
    return "warning"


# ---------- SSL Labs ----------
def _ssl(result: SSLResult, out: Findings) -> None:
    grade = result.grade
    if result.has_warnings:
        out.vulnerabilities.append(Vulnerability(
            severity="medium",
            title="SSL Configuration Issues",
            description="SSL certificate has warnings that should be addressed.",
            category="SSL/TLS",
            source="SSL Labs",
        ))
    if grade in ("F", "D", "C"):
        severity, extent = {
            "F": ("critical", "critical"),
            "D": ("high", "significant"),
            "C": ("medium", "moderate"),
        }[grade]
        out.vulnerabilities.append(Vulnerability(
            severity=severity,
            title="Poor SSL Configuration",
            description=f"SSL configuration has {extent} security issues.",
            category="SSL/TLS",
            source="SSL Labs",
        ))
    if result.has_warnings or grade != "A+":
        out.recommendations.append(Recommendation(
            priority="high" if grade in ("F", "D") else "medium",
            title="Improve SSL Configuration",
            description="Optimize your SSL/TLS configuration for better security.",
            steps=[
                "Review SSL Labs detailed report",
                "Update to latest TLS version",
                "Use strong cipher suites",
                "Implement HSTS",
            ],
            link="https://www.ssllabs.com/ssltest/",
        ))
    out.details.append(Detail(
        category="SSL Certificate",
        description=f"SSL Labs Grade: {grade}",
        status=_grade_status(grade),
        source="SSL Labs",
    ))


# ---------- SecurityHeaders.com ----------
def _headers(result: HeadersResult, out: Findings) -> None:
    missing = result.missing_headers or []
    for header in missing:
        out.vulnerabilities.append(Vulnerability(
            severity=severity_for_header(header),
            title=f"Missing {header}",
            description=f"The {header} security header is not implemented.",
            category="HTTP Headers",
            source="SecurityHeaders.com",
        ))
    if missing:
        out.recommendations.append(Recommendation(
            priority="high",
            title="Implement Missing Security Headers",
            description="Add critical security headers to protect against common attacks.",
            steps=[f"Implement {header}" for header in missing],
            link="https://securityheaders.com/",
        ))
    out.details.append(Detail(
        category="HTTP Security Headers",
        description=f"SecurityHeaders Grade: {result.grade}",
        status=_grade_status(result.grade),
        source="SecurityHeaders.com",
    ))


# ---------- VirusTotal ----------
def _virus_total(result: VirusTotalResult, out: Findings) -> None:
    if not result.clean:
        out.vulnerabilities.append(Vulnerability(
            severity="critical",
            title="Malware Detection",
            description=f"{result.detections} out of {result.engines} engines detected threats.",
            category="Malware",
            source="VirusTotal",
        ))
        out.recommendations.append(Recommendation(
            priority="critical",
            title="Address Malware Issues",
            description="Your website has been flagged for potential malware.",
            steps=[
                "Review VirusTotal detailed report",
                "Check for compromised files or scripts",
                "Scan server for malware",
                "Implement regular security scans",
            ],
            link="https://www.virustotal.com/",
        ))
    out.details.append(Detail(
        category="Malware Scan",
        description="No threats detected" if result.clean else f"{result.detections} threats found",
        status="pass" if result.clean else "fail",
        source="VirusTotal",
    ))


# ---------- Google Safe Browsing ----------
def _safe_browsing(result: SafeBrowsingResult, out: Findings) -> None:
    if not result.safe:
        out.vulnerabilities.append(Vulnerability(
            severity="critical",
            title="Safe Browsing Threats",
            description="Google Safe Browsing has flagged this site as potentially dangerous.",
            category="Reputation",
            source="Google Safe Browsing",
        ))
        out.recommendations.append(Recommendation(
            priority="critical",
            title="Resolve Google Safe Browsing Issues",
            description="Your site has been flagged by Google Safe Browsing.",
            steps=[
                "Review Google Search Console for details",
                "Remove any malicious content",
                "Submit site for review",
                "Implement preventive security measures",
            ],
            link="https://transparencyreport.google.com/safe-browsing/search",
        ))
    default_message = "No threats found" if result.safe else "Threats detected"
    out.details.append(Detail(
        category="Safe Browsing",
        description=result.message or default_message,
        status="pass" if result.safe else "fail",
        source="Google Safe Browsing",
    ))


# ---------- Mozilla Observatory ----------
def _observatory(result: ObservatoryResult, out: Findings) -> None:
    native = result.score
    failed = result.tests_failed
    if native < 0:
        out.vulnerabilities.append(Vulnerability(
            severity="high" if native < -25 else "medium",
            title="Poor Mozilla Observatory Score",
            description=(
                f"Your site has {'significant' if native < -25 else 'moderate'} "
                "security issues according to Mozilla Observatory."
            ),
            category="Web Security",
            source="Mozilla Observatory",
        ))
    if failed > 0:
        out.vulnerabilities.append(Vulnerability(
            severity="high" if failed > 3 else "medium",
            title="Failed Observatory Tests",
            description=f"{failed} security tests failed in Mozilla Observatory evaluation.",
            category="Web Security",
            source="Mozilla Observatory",
        ))
    if native < 50:
        out.recommendations.append(Recommendation(
            priority="medium",
            title="Address Mozilla Observatory Issues",
            description="Improve your security posture based on Mozilla Observatory findings.",
            steps=[
                "Review detailed Observatory report",
                "Fix failed security tests",
                "Implement recommended security practices",
                "Follow up with regular testing",
            ],
            link="https://observatory.mozilla.org/",
        ))

    if native >= 50:
        score_status = "pass"
    elif native >= 0:
        score_status = "warning"
    else:
        score_status = "fail"
    if failed == 0:
        tests_status = "pass"
    elif failed <= 3:
        tests_status = "warning"
    else:
        tests_status = "fail"
    out.details.append(Detail(
        category="Mozilla Observatory",
        description=f"Score: {native}, Grade: {result.grade}",
        status=score_status,
        source="Mozilla Observatory",
    ))
    out.details.append(Detail(
        category="Observatory Tests",
        description=f"Passed: {result.tests_passed}, Failed: {failed}",
        status=tests_status,
        source="Mozilla Observatory",
    ))


RULES = {
    "ssl": (SSLResult, _ssl),
    "headers": (HeadersResult, _headers),
    "virusTotal": (VirusTotalResult, _virus_total),
    "safeBrowsing": (SafeBrowsingResult, _safe_browsing),
    "observatory": (ObservatoryResult, _observatory),
}


def synthesize(results: CheckResultMap, depth: Union[ScanDepth, str]) -> Findings:
    """
    Derive vulnerabilities, recommendations and detail rows from check results.

    Output is ordered basic-tier checks first, then advanced, then full,
    matching check selection order. Checks outside `depth` are ignored.
    """
    selected = select_checks(depth)
    out = Findings()
    for key in CHECK_ORDER:
        result = results.get(key)
        if result is None or key not in selected:
            continue
        kind, rule = RULES[key]
        if isinstance(result, kind):
            rule(result, out)
    return out
