import asyncio
import logging
from sitegrade.checks.base import BaseCheck
from sitegrade.models.schemas import ObservatoryResult

logger = logging.getLogger(__name__)

OBSERVATORY_API = "https://http-observatory.security.mozilla.org/api/v1/analyze"


class ObservatoryCheck(BaseCheck):
    key = "observatory"
    title = "Mozilla Observatory"

    def unavailable(self) -> ObservatoryResult:
        return ObservatoryResult(grade="ERROR", score=0, tests_passed=0, tests_failed=0)

    async def run(self, client, target, settings) -> ObservatoryResult:
        logger.info("Running Mozilla Observatory check for %s", target.hostname)
        params = {"host": target.hostname}
        try:
            r = await client.post(OBSERVATORY_API, params=params)
            r.raise_for_status()

            # the analysis is asynchronous on their side; poll until FINISHED
            for attempt in range(settings.observatory_poll_attempts):
                r = await client.get(OBSERVATORY_API, params=params)
                r.raise_for_status()
                data = r.json()
                if data.get("state") == "FINISHED":
                    return ObservatoryResult(
                        grade=data.get("grade"),
                        score=data.get("score") or 0,
                        tests_passed=data.get("tests_passed") or 0,
                        tests_failed=data.get("tests_failed") or 0,
                        likelihood_indicator=data.get("likelihood_indicator"),
                    )
                await asyncio.sleep(settings.observatory_poll_interval)

            logger.info("Observatory scan for %s still pending after %d polls",
                        target.hostname, settings.observatory_poll_attempts)
            return ObservatoryResult(grade="PENDING", score=0, tests_passed=0, tests_failed=0)
        except Exception as e:
            logger.warning("Mozilla Observatory error for %s: %r", target.hostname, e)
            return self.unavailable()
