"""
Maternal Risk Assessment - FastAPI Application

API endpoints for:
- Running a patient risk assessment (two-phase scoring submission)
- Previewing the assembled scoring payload
- Cached patient list
- Realtime record notifications (Server-Sent Events)
"""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Dict, Any
import asyncio

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from maternal_risk import __version__
from maternal_risk.config import Settings, settings
from maternal_risk.core.pipeline import AlertDispatcher, RiskAssessmentPipeline
from maternal_risk.models import (
    AssessmentPreviewResponse,
    HealthResponse,
    RiskAssessmentRequest,
    RiskAssessmentResponse,
)
from maternal_risk.services import (
    AlertService,
    FactorExtractionClient,
    PatientListCache,
    PatientRecordStore,
    RealtimeNotifier,
    RiskScoringClient,
    format_sse,
)
from maternal_risk.utils import (
    FatalSubmissionError,
    RecordStoreError,
    get_logger,
    setup_logging,
)

logger = get_logger(__name__)

SSE_KEEPALIVE_SECONDS = 15.0


def build_pipeline(config: Settings, notifier: RealtimeNotifier) -> RiskAssessmentPipeline:
    """Wire the pipeline to the services named in the configuration."""
    timeout = config.request_timeout_seconds
    record_store = PatientRecordStore(
        config.records_api_url, timeout=timeout, api_token=config.records_api_token
    )
    alert_service = AlertService(
        config.alerts_api_url, timeout=timeout, api_token=config.records_api_token
    )
    return RiskAssessmentPipeline(
        record_store=record_store,
        risk_scoring=RiskScoringClient(config.risk_scoring_url, timeout=timeout),
        factor_extraction=FactorExtractionClient(config.factor_extraction_url, timeout=timeout),
        alert_dispatcher=AlertDispatcher(alert_service),
        patient_cache=PatientListCache(
            record_store,
            cache_dir=config.patient_cache_dir,
            ttl_seconds=config.patient_cache_ttl_seconds,
        ),
        notifier=notifier,
        threshold_days=config.staleness_threshold_days,
    )


# ---- Application Lifespan ----

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging on startup, close the patient cache on shutdown."""
    setup_logging(settings.log_level, settings.log_file)
    logger.info(
        f"Risk pipeline ready (staleness threshold {settings.staleness_threshold_days} days)"
    )
    yield
    app.state.pipeline.patient_cache.close()
    logger.info("Risk pipeline API shut down.")


# ---- FastAPI Application ----

app = FastAPI(
    title="Maternal Risk Assessment API",
    description="Aggregates antenatal records and submits them for risk scoring",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.notifier = RealtimeNotifier()
app.state.pipeline = build_pipeline(settings, app.state.notifier)
START_TIME = datetime.now()


def _health(request: Request) -> HealthResponse:
    pipeline: RiskAssessmentPipeline = request.app.state.pipeline
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now().isoformat(),
        uptime_seconds=(datetime.now() - START_TIME).total_seconds(),
        services={
            "record_store": pipeline.record_store.is_configured,
            "risk_scoring": pipeline.risk_scoring.is_configured,
            "factor_extraction": pipeline.factor_extraction.is_configured,
        },
    )


def _record_store_http_error(exc: RecordStoreError) -> HTTPException:
    status_code = 404 if exc.status_code == 404 else 502
    return HTTPException(status_code=status_code, detail=exc.to_dict())


# ---- API Endpoints ----

@app.get("/", response_model=HealthResponse, tags=["Health"])
async def root(request: Request):
    """API root - health check."""
    return _health(request)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    return _health(request)


@app.post(
    "/api/v1/patients/{patient_id}/risk-assessment",
    response_model=RiskAssessmentResponse,
    tags=["Risk Assessment"],
)
async def run_risk_assessment(patient_id: str, body: RiskAssessmentRequest, request: Request):
    """
    Run the risk assessment for a patient.

    Statuses: remediation (missing history/triage), awaiting_confirmation
    (resubmit with confirm_stale), cancelled, complete. A primary scoring
    failure returns 502 with the service's error.
    """
    pipeline: RiskAssessmentPipeline = request.app.state.pipeline
    try:
        outcome = await pipeline.run(
            patient_id,
            operator_id=body.operator_id,
            tenant_scope=body.tenant_scope,
            confirm_stale=body.confirm_stale,
        )
    except FatalSubmissionError as e:
        raise HTTPException(status_code=502, detail=e.to_dict())
    except RecordStoreError as e:
        logger.error(f"Risk assessment for {patient_id} could not load records: {e.message}")
        raise _record_store_http_error(e)

    return RiskAssessmentResponse(**outcome.to_dict())


@app.get(
    "/api/v1/patients/{patient_id}/risk-assessment/preview",
    response_model=AssessmentPreviewResponse,
    tags=["Risk Assessment"],
)
async def preview_risk_assessment(patient_id: str, request: Request):
    """Assembled payload, outdated sources and gate decision, without submitting."""
    pipeline: RiskAssessmentPipeline = request.app.state.pipeline
    try:
        plan = await pipeline.preview(patient_id)
    except RecordStoreError as e:
        raise _record_store_http_error(e)
    return AssessmentPreviewResponse(**plan.to_dict())


@app.get("/api/v1/patients", tags=["Patients"])
async def list_patients(request: Request, tenant_scope: str = Query(default="public")):
    """Cached patient list for a tenant."""
    pipeline: RiskAssessmentPipeline = request.app.state.pipeline
    try:
        patients: List[Dict[str, Any]] = await pipeline.patient_cache.get_or_refresh(tenant_scope)
    except RecordStoreError as e:
        raise _record_store_http_error(e)
    return {"tenant_scope": tenant_scope, "count": len(patients), "patients": patients}


@app.get("/api/v1/events/stream", tags=["Realtime"])
async def stream_events(request: Request):
    """Server-Sent Events stream of medical record notifications."""
    notifier: RealtimeNotifier = request.app.state.notifier
    queue = notifier.subscribe()

    async def event_generator():
        try:
            yield ": connected\n\n"
            while True:
                if await request.is_disconnected():
                    break
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=SSE_KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield format_sse(message)
        finally:
            notifier.unsubscribe(queue)

    return StreamingResponse(event_generator(), media_type="text/event-stream")


# ---- Run with uvicorn ----
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
