"""Web host for the concurrent claim analysis workflow

Endpoints:
    GET  /health                      - liveness
    GET  /agents                      - registered specialists
    POST /workflows/claim-analysis    - run the fan-out/fan-in analysis
    GET  /telemetry                   - recorded agent spans and summary
"""
from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from claim_analysis import EXAMPLE_CLAIMS, SPECIALISTS, WORKFLOW_NAME, analyze_claim
from llm import ConfigurationError
from telemetry import TelemetryRecorder

load_dotenv()

logger = logging.getLogger(__name__)

SERVICE_NAME = "InsuranceClaimAnalysis"
SERVICE_VERSION = "1.0.0"
HOST = os.getenv("CLAIMS_HOST", "127.0.0.1")
PORT = int(os.getenv("CLAIMS_PORT", "5002"))
SENSITIVE_DATA = os.getenv("TELEMETRY_SENSITIVE_DATA", "false").lower() in ("1", "true", "yes")

recorder = TelemetryRecorder(
    service_name=SERVICE_NAME,
    service_version=SERVICE_VERSION,
    sensitive_data=SENSITIVE_DATA,
    otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"),
)

app = FastAPI(title="Insurance Claim Analysis", version=SERVICE_VERSION)


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class ClaimRequest(BaseModel):
    claim: str = Field(min_length=1, description="Free-text insurance claim")


class SpecialistInfo(BaseModel):
    name: str
    title: str


class AgentsResponse(BaseModel):
    workflow: str
    agents: list[SpecialistInfo]


class SpecialistResponse(BaseModel):
    agent: str
    title: str
    status: str
    text: str
    error: str | None = None
    duration_ms: int
    input_tokens: int
    output_tokens: int


class ClaimAnalysisResponse(BaseModel):
    workflow: str
    claim: str
    results: list[SpecialistResponse]
    report: str


class TelemetryResponse(BaseModel):
    resource: dict[str, str]
    summary: dict[str, dict]
    spans: list[dict]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "service": SERVICE_NAME, "version": SERVICE_VERSION}


@app.get("/agents", response_model=AgentsResponse)
async def list_agents() -> AgentsResponse:
    return AgentsResponse(
        workflow=WORKFLOW_NAME,
        agents=[SpecialistInfo(name=s.name, title=s.title) for s in SPECIALISTS],
    )


@app.post(f"/workflows/{WORKFLOW_NAME}", response_model=ClaimAnalysisResponse)
async def run_claim_analysis(request: ClaimRequest) -> ClaimAnalysisResponse:
    """Run every specialist on the claim and return the combined output.

    Error handling:
    - Missing API key -> 503 Service Unavailable
    - Empty claim -> 422
    - Every specialist failing -> 502 Bad Gateway
    - Partial failures -> 200, failed specialists carry status "error"
    """
    if not request.claim.strip():
        raise HTTPException(status_code=422, detail="Claim text cannot be empty")

    try:
        analysis = await analyze_claim(request.claim, recorder=recorder)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        raise HTTPException(
            status_code=503,
            detail=f"Service configuration error: {e}",
        ) from e
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    if analysis.results and not analysis.succeeded:
        raise HTTPException(
            status_code=502,
            detail="All specialists failed: "
            + "; ".join(f"{r.agent}: {r.error}" for r in analysis.failed),
        )

    return ClaimAnalysisResponse(
        workflow=analysis.workflow,
        claim=analysis.claim,
        results=[
            SpecialistResponse(
                agent=r.agent,
                title=r.title,
                status=r.status,
                text=r.text,
                error=r.error,
                duration_ms=r.duration_ms,
                input_tokens=r.input_tokens,
                output_tokens=r.output_tokens,
            )
            for r in analysis.results
        ],
        report=analysis.report(),
    )


@app.get("/telemetry", response_model=TelemetryResponse)
async def get_telemetry(limit: int = Query(default=50, ge=0, le=500)) -> TelemetryResponse:
    return TelemetryResponse(
        resource=recorder.resource_attributes(),
        summary=recorder.summary(),
        spans=recorder.spans(limit),
    )


# ---------------------------------------------------------------------------
# Console output
# ---------------------------------------------------------------------------


def banner(url: str) -> str:
    width = 62
    lines = [
        "╔" + "═" * width + "╗",
        "║" + "CONCURRENT ORCHESTRATION: Insurance Claim Analysis".center(width) + "║",
        "╠" + "═" * width + "╣",
        "║" + "  Parallel Analysis by:".ljust(width) + "║",
    ]
    for left, right in zip(SPECIALISTS[::2], SPECIALISTS[1::2]):
        row = f"  • {left.title:<18} • {right.title}"
        lines.append("║" + row.ljust(width) + "║")
    lines += [
        "╠" + "═" * width + "╣",
        "║" + f"  API:   {url}/workflows/{WORKFLOW_NAME}".ljust(width) + "║",
        "║" + f"  Docs:  {url}/docs".ljust(width) + "║",
        "╚" + "═" * width + "╝",
        "",
        "Test examples:",
    ]
    lines += [f'  {i}. "{claim}"' for i, claim in enumerate(EXAMPLE_CLAIMS, start=1)]
    return "\n".join(lines)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print()
    print(banner(f"http://{HOST}:{PORT}"))
    print()
    uvicorn.run(app, host=HOST, port=PORT)
