class SiteGradeError(Exception):
    """Base class for scanner errors."""


class InvalidTargetError(SiteGradeError, ValueError):
    """The submitted URL cannot be scanned."""

    def __init__(self, message: str, value=None) -> None:
        super().__init__(message)
        self.value = value


class InvalidConfigurationError(SiteGradeError, ValueError):
    """Unknown scan depth or other caller configuration mistake."""

    def __init__(self, message: str, value=None) -> None:
        super().__init__(message)
        self.value = value


class ProviderError(SiteGradeError, RuntimeError):
    """A third-party service returned something unusable."""


class PipelineError(SiteGradeError, RuntimeError):
    """Orchestration/scoring failed; callers fall back to synthetic data."""
