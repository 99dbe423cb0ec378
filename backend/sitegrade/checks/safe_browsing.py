import logging
from sitegrade.checks.base import BaseCheck
from sitegrade.models.schemas import SafeBrowsingResult

logger = logging.getLogger(__name__)

SAFE_BROWSING_URL = "https://safebrowsing.googleapis.com/v4/threatMatches:find"

THREAT_TYPES = ["MALWARE", "SOCIAL_ENGINEERING", "UNWANTED_SOFTWARE", "POTENTIALLY_HARMFUL_APPLICATION"]


def lookup_body(url: str) -> dict:
    return {
        "client": {"clientId": "sitegrade", "clientVersion": "0.1.0"},
        "threatInfo": {
            "threatTypes": THREAT_TYPES,
            "platformTypes": ["ANY_PLATFORM"],
            "threatEntryTypes": ["URL"],
            "threatEntries": [{"url": url}],
        },
    }


class SafeBrowsingCheck(BaseCheck):
    key = "safeBrowsing"
    title = "Google Safe Browsing"
    credential = "safebrowsing_api_key"

    def unconfigured(self) -> SafeBrowsingResult:
        return SafeBrowsingResult(safe=True, threats=[], message="API key not configured")

    def unavailable(self) -> SafeBrowsingResult:
        return SafeBrowsingResult(safe=True, threats=[], message="API unavailable")

    async def run(self, client, target, settings) -> SafeBrowsingResult:
        logger.info("Running Google Safe Browsing check for %s", target.url)
        if not settings.safebrowsing_api_key:
            return self.unconfigured()
        try:
            r = await client.post(
                SAFE_BROWSING_URL,
                params={"key": settings.safebrowsing_api_key},
                json=lookup_body(target.url),
            )
            r.raise_for_status()
            matches = r.json().get("matches") or []
            return SafeBrowsingResult(
                safe=not matches,
                threats=matches,
                message="Threats detected" if matches else "No threats found",
            )
        except Exception as e:
            logger.warning("Google Safe Browsing API error for %s: %r", target.url, e)
            return self.unavailable()
