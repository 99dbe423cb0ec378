from functools import lru_cache
from fastapi import Depends
from sitegrade.core.config import Settings
from sitegrade.core.engine import Orchestrator


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def get_orchestrator(settings: Settings = Depends(get_settings)) -> Orchestrator:
    # fresh per request: no provider state is shared between scans
    return Orchestrator(settings)
