import logging
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sitegrade.api.deps import get_orchestrator, get_settings
from sitegrade.api.llm import router as llm_router
from sitegrade.core.engine import Orchestrator, export_report, run_scan
from sitegrade.core.errors import InvalidConfigurationError, InvalidTargetError
from sitegrade.core.logging import setup_logging
from sitegrade.models.schemas import Report, ScanRequest

setup_logging(get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="SiteGrade API", version="0.1.0")

origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/scan", response_model=Report)
async def start_scan(req: ScanRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    try:
        return await run_scan(req.url, req.scan_depth, orchestrator=orchestrator)
    except (InvalidTargetError, InvalidConfigurationError) as e:
        logger.info("Rejected scan request: %s", e)
        raise HTTPException(status_code=422, detail={"message": str(e), "input": e.value})


@app.post("/scan/export")
def export_scan(report: Report):
    payload = export_report(report)
    day = payload["exportDate"].split("T")[0]
    return JSONResponse(
        payload,
        headers={"Content-Disposition": f'attachment; filename="security-report-{day}.json"'},
    )


# mount the remediation chat router
app.include_router(llm_router)
