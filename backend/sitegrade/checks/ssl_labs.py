import logging
from sitegrade.checks.base import BaseCheck
from sitegrade.core.errors import ProviderError
from sitegrade.models.schemas import SSLResult

logger = logging.getLogger(__name__)

SSL_LABS_API = "https://api.ssllabs.com/api/v3/analyze"


class SSLLabsCheck(BaseCheck):
    key = "ssl"
    title = "SSL Labs"

    def unavailable(self) -> SSLResult:
        return SSLResult(grade="ERROR", has_warnings=True, is_exceptional=False, progress=0)

    async def run(self, client, target, settings) -> SSLResult:
        logger.info("Running SSL Labs check for %s", target.hostname)
        try:
            r = await client.get(SSL_LABS_API, params={
                "host": target.hostname,
                "publish": "off",
                "startNew": "on",
                "all": "done",
            })
            r.raise_for_status()
            data = r.json()
            if data.get("status") == "ERROR":
                raise ProviderError(data.get("statusMessage") or "SSL Labs assessment failed")
            endpoints = data.get("endpoints") or [{}]
            endpoint = endpoints[0] or {}
            if data.get("status") == "READY":
                progress = 100
            else:
                progress = endpoint.get("progress") or 0
            return SSLResult(
                grade=endpoint.get("grade") or "N/A",
                has_warnings=bool(endpoint.get("hasWarnings")),
                is_exceptional=bool(endpoint.get("isExceptional")),
                progress=progress,
            )
        except Exception as e:
            logger.warning("SSL Labs API error for %s: %r", target.hostname, e)
            return self.unavailable()
