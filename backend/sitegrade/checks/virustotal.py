import logging
from sitegrade.checks.base import BaseCheck
from sitegrade.models.schemas import VirusTotalResult

logger = logging.getLogger(__name__)

VIRUSTOTAL_SCAN_URL = "https://www.virustotal.com/vtapi/v2/url/scan"


class VirusTotalCheck(BaseCheck):
    key = "virusTotal"
    title = "VirusTotal"
    credential = "virustotal_api_key"

    def unconfigured(self) -> VirusTotalResult:
        return VirusTotalResult(clean=True, detections=0, engines=0, message="API key not configured")

    def unavailable(self) -> VirusTotalResult:
        return VirusTotalResult(clean=True, detections=0, engines=0, message="API unavailable")

    async def run(self, client, target, settings) -> VirusTotalResult:
        logger.info("Running VirusTotal check for %s", target.url)
        if not settings.virustotal_api_key:
            return self.unconfigured()
        try:
            r = await client.post(VIRUSTOTAL_SCAN_URL, data={
                "apikey": settings.virustotal_api_key,
                "url": target.url,
            })
            r.raise_for_status()
            data = r.json()
            positives = data.get("positives") or 0
            return VirusTotalResult(
                clean=positives == 0,
                detections=positives,
                engines=data.get("total") or 0,
                scan_date=data.get("scan_date"),
                permalink=data.get("permalink"),
            )
        except Exception as e:
            logger.warning("VirusTotal API error for %s: %r", target.url, e)
            return self.unavailable()
