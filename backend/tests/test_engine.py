import asyncio
import logging
import random
import pytest
from conftest import RaisingCheck, StaticCheck
from sitegrade.core.engine import Orchestrator, export_report, format_duration, parse_target, run_scan
from sitegrade.core.errors import InvalidConfigurationError, InvalidTargetError
from sitegrade.models.schemas import (
    HeadersResult,
    ObservatoryResult,
    SafeBrowsingResult,
    SSLResult,
    Target,
    VirusTotalResult,
)

TARGET = Target(url="https://example.com", hostname="example.com")


def test_parse_target():
    target = parse_target("  https://Example.com/path?q=1 ")
    assert target.url == "https://Example.com/path?q=1"
    assert target.hostname == "example.com"


@pytest.mark.parametrize("url", [
    "example.com",
    "ftp://example.com",
    "https://",
    "",
    "http://[::1",
    "http://example.com:abc",
    "http://example.com:99999",
    "https://exa mple.com",
    "https://exa<mple.com",
])
def test_parse_target_rejects_bad_urls(url):
    with pytest.raises(InvalidTargetError) as exc:
        parse_target(url)
    assert exc.value.value == url


@pytest.mark.parametrize("url", ["http://example.com:abc", "https://exa mple.com"])
def test_malformed_url_never_reaches_providers(url, settings, make_orchestrator):
    ssl = StaticCheck("ssl", SSLResult(grade="A"))
    headers = StaticCheck("headers", HeadersResult(grade="A"))
    with pytest.raises(InvalidTargetError):
        asyncio.run(run_scan(url, "basic", orchestrator=make_orchestrator(settings, ssl, headers)))
    assert (ssl.calls, headers.calls) == (0, 0)


def test_parse_target_accepts_ports_and_ip_hosts():
    assert parse_target("http://example.com:8080/").hostname == "example.com"
    assert parse_target("http://[::1]:8443").hostname == "::1"
    assert parse_target("https://127.0.0.1").hostname == "127.0.0.1"


def test_basic_scan_end_to_end(settings, make_orchestrator):
    ssl = StaticCheck("ssl", SSLResult(grade="B"))
    headers = StaticCheck("headers", HeadersResult(grade="C"))
    report = asyncio.run(run_scan("https://example.com", "basic",
                                  orchestrator=make_orchestrator(settings, ssl, headers)))

    assert report.fallback is False
    assert report.overall_score == 73
    assert report.grade == "C"
    assert report.tests_performed == ["SSL Certificate Analysis", "Security Headers Check"]
    assert list(report.checks) == ["ssl", "headers"]
    assert report.hostname == "example.com"
    assert report.scan_duration.endswith("seconds")
    assert (ssl.calls, headers.calls) == (1, 1)


def test_missing_credentials_get_stubs_without_calls(settings, make_orchestrator):
    vt = StaticCheck("virusTotal", VirusTotalResult(clean=False, detections=9), credential="virustotal_api_key")
    sb = StaticCheck("safeBrowsing", SafeBrowsingResult(safe=False), credential="safebrowsing_api_key")
    orchestrator = make_orchestrator(
        settings,
        StaticCheck("ssl", SSLResult(grade="A")),
        StaticCheck("headers", HeadersResult(grade="A")),
        vt,
        sb,
    )
    results = asyncio.run(orchestrator.run(TARGET, "advanced"))

    assert list(results) == ["ssl", "headers", "virusTotal", "safeBrowsing"]
    assert (vt.calls, sb.calls) == (0, 0)
    assert results["virusTotal"].message == "API key not configured"
    assert results["virusTotal"].clean is True
    assert results["safeBrowsing"].message == "API key not configured"


def test_configured_credentials_call_the_provider(keyed_settings, make_orchestrator):
    vt = StaticCheck("virusTotal", VirusTotalResult(clean=False, detections=5, engines=70),
                     credential="virustotal_api_key")
    orchestrator = make_orchestrator(
        keyed_settings,
        StaticCheck("ssl", SSLResult(grade="A+")),
        StaticCheck("headers", HeadersResult(grade="A+")),
        vt,
        StaticCheck("safeBrowsing", SafeBrowsingResult(safe=True), credential="safebrowsing_api_key"),
    )
    report = asyncio.run(run_scan("https://example.com", "advanced", orchestrator=orchestrator))

    assert vt.calls == 1
    assert [v.source for v in report.vulnerabilities if v.severity == "critical"] == ["VirusTotal"]
    # (30 + 30 + 0.15 * 50 + 15) / 0.9
    assert report.overall_score == 92


def test_failing_provider_does_not_affect_siblings(settings, make_orchestrator):
    orchestrator = make_orchestrator(
        settings,
        RaisingCheck("ssl"),
        StaticCheck("headers", HeadersResult(grade="B")),
    )
    report = asyncio.run(run_scan("https://example.com", "basic", orchestrator=orchestrator))

    assert report.fallback is False
    assert report.checks["ssl"].grade == "ERROR"
    assert report.checks["headers"].grade == "B"
    # (0 * 0.3 + 80 * 0.3) / 0.6
    assert report.overall_score == 40


def test_failing_provider_is_logged_with_traceback(settings, make_orchestrator, caplog):
    orchestrator = make_orchestrator(settings, RaisingCheck("ssl"), StaticCheck("headers", HeadersResult(grade="B")))
    with caplog.at_level(logging.ERROR, logger="sitegrade.core.engine"):
        asyncio.run(orchestrator.run(TARGET, "basic"))

    [record] = [r for r in caplog.records if r.name == "sitegrade.core.engine"]
    assert "boom from ssl" in record.getMessage()
    assert record.exc_info[0] is RuntimeError


def test_checks_run_concurrently(settings, make_orchestrator):
    class Rendezvous(StaticCheck):
        def __init__(self, key, result, mine, other):
            super().__init__(key, result)
            self.mine, self.other = mine, other

        async def run(self, client, target, settings):
            self.mine.set()
            await asyncio.wait_for(self.other.wait(), timeout=2)
            return self.result

    async def scenario():
        a, b = asyncio.Event(), asyncio.Event()
        orchestrator = make_orchestrator(
            settings,
            Rendezvous("ssl", SSLResult(grade="A"), a, b),
            Rendezvous("headers", HeadersResult(grade="A"), b, a),
        )
        return await orchestrator.run(TARGET, "basic")

    results = asyncio.run(scenario())
    assert results["ssl"].grade == "A"
    assert results["headers"].grade == "A"


def test_all_providers_failing_yields_fallback(settings, make_orchestrator):
    orchestrator = make_orchestrator(settings, RaisingCheck("ssl"), RaisingCheck("headers"))
    report = asyncio.run(run_scan("https://example.com", "basic",
                                  orchestrator=orchestrator, rng=random.Random(3)))

    assert report.fallback is True
    assert "boom" in report.error
    assert report.overall_score >= 60
    assert report.vulnerabilities and report.recommendations and report.details
    assert report.vulnerabilities[0].title == "Missing Security Headers"


@pytest.mark.parametrize("depth,floor,vulns", [("advanced", 40, 3), ("full", 30, 5)])
def test_pipeline_failure_fallback_per_tier(settings, depth, floor, vulns):
    class BrokenOrchestrator(Orchestrator):
        async def run(self, target, depth):
            raise RuntimeError("provider outage")

    report = asyncio.run(run_scan("https://example.com", depth,
                                  orchestrator=BrokenOrchestrator(settings), rng=random.Random(11)))
    assert report.fallback is True
    assert report.error == "provider outage"
    assert report.overall_score >= floor
    assert len(report.vulnerabilities) == vulns


def test_full_scan_uses_every_check(keyed_settings, make_orchestrator):
    orchestrator = make_orchestrator(
        keyed_settings,
        StaticCheck("ssl", SSLResult(grade="A")),
        StaticCheck("headers", HeadersResult(grade="A")),
        StaticCheck("virusTotal", VirusTotalResult(clean=True), credential="virustotal_api_key"),
        StaticCheck("safeBrowsing", SafeBrowsingResult(safe=True), credential="safebrowsing_api_key"),
        StaticCheck("observatory", ObservatoryResult(grade="B", score=60, tests_passed=10, tests_failed=1)),
    )
    report = asyncio.run(run_scan("https://example.com", "full", orchestrator=orchestrator))
    assert len(report.tests_performed) == 5
    assert list(report.checks) == ["ssl", "headers", "virusTotal", "safeBrowsing", "observatory"]
    # (28.5 + 28.5 + 15 + 15 + 0.2 * 160) / 1.0 = 119 -> clamped
    assert report.overall_score == 100
    assert report.grade == "A+"


def test_invalid_input_fails_before_any_provider(settings, make_orchestrator):
    ssl = StaticCheck("ssl", SSLResult(grade="A"))
    orchestrator = make_orchestrator(settings, ssl)
    with pytest.raises(InvalidTargetError):
        asyncio.run(run_scan("javascript:alert(1)", "basic", orchestrator=orchestrator))
    with pytest.raises(InvalidConfigurationError):
        asyncio.run(run_scan("https://example.com", "extreme", orchestrator=orchestrator))
    assert ssl.calls == 0


def test_export_adds_export_date(settings, make_orchestrator):
    orchestrator = make_orchestrator(
        settings,
        StaticCheck("ssl", SSLResult(grade="A")),
        StaticCheck("headers", HeadersResult(grade="B", missing_headers=["X-Frame-Options"])),
    )
    report = asyncio.run(run_scan("https://example.com", "basic", orchestrator=orchestrator))
    payload = export_report(report)

    assert payload["exportDate"].endswith("Z")
    assert payload["overallScore"] == report.overall_score
    assert payload["testsPerformed"] == report.tests_performed
    assert payload["checks"]["headers"]["missingHeaders"] == ["X-Frame-Options"]
    assert payload["fallback"] is False


def test_format_duration():
    assert format_duration(0.4) == "0 seconds"
    assert format_duration(1.2) == "1 second"
    assert format_duration(27.6) == "28 seconds"
