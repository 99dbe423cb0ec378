from typing import Optional
from sitegrade.core.config import Settings
from sitegrade.models.schemas import CheckResult, Target


class BaseCheck:
    """
    One third-party security service.

    Subclasses set `key` (the CheckResultMap key), `title` and, when the
    service needs an API key, `credential` (the Settings field holding it).
    `run` must never raise: failures come back as `unavailable()`.
    """

    key: str = ""
    title: str = ""
    credential: Optional[str] = None

    def is_configured(self, settings: Settings) -> bool:
        return settings.has_credential(self.credential)

    def unconfigured(self) -> CheckResult:
        """Stub inserted when the credential is missing."""
        return self.unavailable()

    def unavailable(self) -> CheckResult:
        raise NotImplementedError

    async def run(self, client, target: Target, settings: Settings) -> CheckResult:
        raise NotImplementedError

