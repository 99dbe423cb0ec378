import os
from typing import Mapping, Optional
from pydantic import BaseModel
from dotenv import load_dotenv

# env var -> Settings field
ENV_VARS = {
    "VIRUSTOTAL_API_KEY": "virustotal_api_key",
    "GOOGLE_SAFEBROWSING_API_KEY": "safebrowsing_api_key",
    "OPENAI_API_KEY": "openai_api_key",
    "SITEGRADE_OPENAI_MODEL": "openai_model",
    "SITEGRADE_HTTP_TIMEOUT": "http_timeout",
    "SITEGRADE_HTTP_CONNECT_TIMEOUT": "http_connect_timeout",
    "SITEGRADE_OBSERVATORY_POLL_ATTEMPTS": "observatory_poll_attempts",
    "SITEGRADE_OBSERVATORY_POLL_INTERVAL": "observatory_poll_interval",
    "SITEGRADE_LOG_LEVEL": "log_level",
}


class Settings(BaseModel):
    virustotal_api_key: Optional[str] = None
    safebrowsing_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    http_timeout: float = 10.0
    http_connect_timeout: float = 5.0
    observatory_poll_attempts: int = 10
    observatory_poll_interval: float = 2.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from the process environment (plus backend/.env).
        Pass `environ` to read from a plain mapping instead.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ
        values = {}
        for var, field in ENV_VARS.items():
            raw = environ.get(var)
            if raw is not None and raw.strip():
                values[field] = raw.strip()
        return cls(**values)

    def has_credential(self, field: Optional[str]) -> bool:
        if field is None:
            return True
        return bool(getattr(self, field, None))
