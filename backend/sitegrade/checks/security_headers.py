import logging
import re
from typing import List
from sitegrade.checks.base import BaseCheck
from sitegrade.models.schemas import HeadersResult

logger = logging.getLogger(__name__)

SECURITY_HEADERS_URL = "https://securityheaders.com/"

TRACKED_HEADERS: List[str] = [
    "Content-Security-Policy",
    "X-Frame-Options",
    "X-Content-Type-Options",
    "Strict-Transport-Security",
    "Referrer-Policy",
]

GRADE_RE = re.compile(r'class="grade-([A-F]+)"')


def _headers_marked(html: str, state: str) -> List[str]:
    """Tracked headers the report page marks as `state` (missing/present)."""
    found = []
    for name in TRACKED_HEADERS:
        if re.search(re.escape(name) + r".*" + state, html, re.IGNORECASE):
            found.append(name)
    return found


def parse_report(html: str) -> HeadersResult:
    m = GRADE_RE.search(html)
    return HeadersResult(
        grade=m.group(1) if m else "F",
        missing_headers=_headers_marked(html, "missing"),
        present_headers=_headers_marked(html, "present"),
    )


class SecurityHeadersCheck(BaseCheck):
    key = "headers"
    title = "SecurityHeaders.com"

    def unavailable(self) -> HeadersResult:
        return HeadersResult(grade="ERROR", missing_headers=[], present_headers=[])

    async def run(self, client, target, settings) -> HeadersResult:
        logger.info("Running Security Headers check for %s", target.url)
        try:
            r = await client.get(
                SECURITY_HEADERS_URL,
                params={"q": target.url, "followRedirects": "on"},
                headers={"Accept": "text/html, */*"},
            )
            r.raise_for_status()
            return parse_report(r.text)
        except Exception as e:
            logger.warning("SecurityHeaders error for %s: %r", target.url, e)
            return self.unavailable()
