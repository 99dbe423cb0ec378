import asyncio
import ipaddress
import logging
import random
import re
import time
from typing import Any, Dict, Optional, Union
from urllib.parse import urlsplit
import httpx
from sitegrade.checks.base import BaseCheck
from sitegrade.checks.observatory import ObservatoryCheck
from sitegrade.checks.safe_browsing import SafeBrowsingCheck
from sitegrade.checks.security_headers import SecurityHeadersCheck
from sitegrade.checks.ssl_labs import SSLLabsCheck
from sitegrade.checks.virustotal import VirusTotalCheck
from sitegrade.core.config import Settings
from sitegrade.core.errors import InvalidTargetError, PipelineError
from sitegrade.core.fallback import generate_fallback, utc_timestamp
from sitegrade.core.findings import synthesize
from sitegrade.core.http import client_for
from sitegrade.core.scoring import grade_for, score
from sitegrade.core.tiers import resolve_depth, select_checks, tests_for
from sitegrade.models.schemas import CheckResultMap, Report, ScanDepth, Target

logger = logging.getLogger(__name__)

# characters a URL host may not contain (whitespace, delimiters, percent escapes)
_FORBIDDEN_HOST_CHARS = re.compile(r"[\s#%/:<>?@\[\\\]^|\"{}`]")


def default_checks() -> Dict[str, BaseCheck]:
    checks = [
        SSLLabsCheck(),
        SecurityHeadersCheck(),
        VirusTotalCheck(),
        SafeBrowsingCheck(),
        ObservatoryCheck(),
    ]
    return {c.key: c for c in checks}


def parse_target(url: str) -> Target:
    """Validate a user-supplied URL; raises InvalidTargetError echoing the input."""
    raw = url.strip() if isinstance(url, str) else ""
    try:
        parts = urlsplit(raw)
        hostname = parts.hostname
        parts.port  # raises ValueError for a non-numeric or out-of-range port
    except ValueError:
        raise InvalidTargetError(f"Invalid URL: {url!r}", value=url) from None
    if parts.scheme.lower() not in ("http", "https"):
        raise InvalidTargetError(f"Invalid URL protocol (expected http or https): {url!r}", value=url)
    if not hostname:
        raise InvalidTargetError(f"Invalid URL (no hostname): {url!r}", value=url)
    if not _valid_host(hostname):
        raise InvalidTargetError(f"Invalid URL (bad hostname): {url!r}", value=url)
    return Target(url=raw, hostname=hostname)


def _valid_host(hostname: str) -> bool:
    if ":" in hostname:
        try:
            ipaddress.IPv6Address(hostname)
        except ValueError:
            return False
        return True
    return _FORBIDDEN_HOST_CHARS.search(hostname) is None


class Orchestrator:
    """
    Runs the checks selected for a scan depth concurrently.

    Checks whose credential is missing from `settings` get their stub result
    without being called. A check that raises is turned into its own error
    result, leaving the others untouched; only when every invoked check
    raises does the run fail with PipelineError.
    """

    def __init__(
        self,
        settings: Settings,
        checks: Optional[Dict[str, BaseCheck]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.checks = default_checks()
        self.checks.update(checks or {})
        self.transport = transport

    async def run(self, target: Target, depth: Union[ScanDepth, str]) -> CheckResultMap:
        selected = select_checks(depth)
        missing = [key for key in selected if key not in self.checks]
        if missing:
            raise PipelineError(f"No check registered for: {', '.join(missing)}")

        results: CheckResultMap = {}
        to_run = []
        for key in selected:
            check = self.checks[key]
            if check.is_configured(self.settings):
                to_run.append(key)
            else:
                logger.info("Skipping %s check - API key not configured", check.title)
                results[key] = check.unconfigured()

        if to_run:
            async with client_for(self.settings, transport=self.transport) as client:
                settled = await asyncio.gather(*[
                    self._invoke(self.checks[key], client, target) for key in to_run
                ])
            errors = [e for _, e in settled if e is not None]
            if errors and len(errors) == len(settled):
                raise PipelineError(f"All {len(errors)} providers failed; first error: {errors[0]!r}") from errors[0]
            results.update((key, result) for key, (result, _) in zip(to_run, settled))

        return {key: results[key] for key in selected}

    async def _invoke(self, check: BaseCheck, client, target: Target):
        try:
            return await check.run(client, target, self.settings), None
        except Exception as e:
            logger.error("%s check raised for %s: %r", check.title, target.url, e, exc_info=e)
            return check.unavailable(), e


def format_duration(seconds: float) -> str:
    whole = int(round(seconds))
    return "1 second" if whole == 1 else f"{whole} seconds"


def build_report(target: Target, depth: ScanDepth, results: CheckResultMap, elapsed: float) -> Report:
    overall = score(results, depth)
    findings = synthesize(results, depth)
    return Report(
        url=target.url,
        hostname=target.hostname,
        timestamp=utc_timestamp(),
        scan_depth=depth,
        overall_score=overall,
        grade=grade_for(overall),
        vulnerabilities=findings.vulnerabilities,
        recommendations=findings.recommendations,
        details=findings.details,
        tests_performed=tests_for(results.keys()),
        scan_duration=format_duration(elapsed),
        checks=results,
    )


async def run_scan(
    url: str,
    depth: Union[ScanDepth, str] = ScanDepth.BASIC,
    settings: Optional[Settings] = None,
    orchestrator: Optional[Orchestrator] = None,
    rng: Optional[random.Random] = None,
) -> Report:
    """
    Scan `url` at `depth` and return a report.

    Bad input (URL or depth) raises before any provider is called. Anything
    that goes wrong after that yields a fallback report instead.
    """
    target = parse_target(url)
    tier = resolve_depth(depth)
    orchestrator = orchestrator or Orchestrator(settings or Settings())

    logger.info("Starting %s scan for %s", tier.value, target.url)
    started = time.monotonic()
    try:
        results = await orchestrator.run(target, tier)
        report = build_report(target, tier, results, time.monotonic() - started)
    except Exception as e:
        logger.exception("Security scan failed for %s; returning fallback report", target.url)
        return generate_fallback(target.url, tier, rng=rng, error=str(e) or repr(e))

    logger.info("Scan of %s completed with score %d (%s)", target.url, report.overall_score, report.grade)
    return report


def export_report(report: Report) -> Dict[str, Any]:
    """JSON-ready report with an `exportDate` stamp."""
    payload = report.model_dump(mode="json", by_alias=True)
    payload["exportDate"] = utc_timestamp()
    return payload
