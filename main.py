import logging
import os
from typing import Dict, List, Optional

from fastapi import FastAPI, Header, HTTPException, Query

from config import Settings
from models.api import (
    ExplanationFactor,
    FeedbackRequest,
    FeedbackResponse,
    ModelStats,
    ScoreRequest,
    ScoreResponse,
    TrendMatchSummary,
    TrendUpdateRequest,
)
from models.trends import TrendUpdate
from services.blending import ScoreResult
from services.context import AppContext, build_context

APP_NAME = "Scam Risk Scoring"

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(APP_NAME)

settings = Settings.from_env()
context: AppContext = build_context(settings)

# Module global so tests can toggle auth without rebuilding the context.
API_KEY = settings.api_key

app = FastAPI(title=APP_NAME)


def _require_api_key(x_api_key: Optional[str]) -> None:
    # If API key is not configured, run in open mode.
    if not API_KEY:
        return
    if not x_api_key or x_api_key != API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")


def _score_response(result: ScoreResult) -> ScoreResponse:
    return ScoreResponse(
        riskScore=round(result.risk_score, 2),
        confidence=round(result.confidence, 3),
        label=result.label,
        isScam=result.is_scam,
        source=result.source,
        localScore=round(result.local.risk_score, 2),
        externalScore=result.external.score if result.external else None,
        topSignals=result.top_signals,
        explanation=[
            ExplanationFactor(
                factor=f.key,
                label=f.label,
                weight=round(f.weight, 4),
                contribution=round(f.contribution, 4),
            )
            for f in result.local.factors
        ],
        matchedTrends=[
            TrendMatchSummary(
                id=t.id,
                title=t.title,
                riskLevel=t.risk_level,
                reportedCases=t.reported_cases,
            )
            for t in result.matched_trends
        ],
        signals=result.signals.to_payload(),
    )


@app.on_event("startup")
async def _on_startup() -> None:
    if settings.enable_trend_monitor:
        context.monitor.start()
    logger.info("%s started | trend monitor=%s", APP_NAME, context.monitor.running)


@app.on_event("shutdown")
async def _on_shutdown() -> None:
    context.shutdown()


@app.get("/health")
async def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/api/score", response_model=ScoreResponse)
def score_text(req: ScoreRequest, x_api_key: Optional[str] = Header(None)) -> ScoreResponse:
    _require_api_key(x_api_key)
    result = context.blender.score(req.text, req.context)
    return _score_response(result)


@app.post("/api/feedback", response_model=FeedbackResponse)
async def submit_feedback(req: FeedbackRequest, x_api_key: Optional[str] = Header(None)) -> FeedbackResponse:
    _require_api_key(x_api_key)
    example = context.training_store.add_example(req.text, req.label, req.confidence)
    return FeedbackResponse(status="success", exampleId=example.id, adapted=example.verified)


@app.get("/api/alerts")
async def active_alerts(x_api_key: Optional[str] = Header(None)) -> List[Dict[str, object]]:
    _require_api_key(x_api_key)
    return [a.to_payload() for a in context.alerts.active_alerts()]


@app.get("/api/trends")
async def list_trends(
    q: Optional[str] = Query(default=None, max_length=200),
    x_api_key: Optional[str] = Header(None),
) -> List[Dict[str, object]]:
    _require_api_key(x_api_key)
    trends = context.catalog.search(q) if q else context.catalog.list_current()
    return [t.to_payload() for t in trends]


@app.get("/api/trends/{trend_id}")
async def trend_detail(trend_id: str, x_api_key: Optional[str] = Header(None)) -> Dict[str, object]:
    _require_api_key(x_api_key)
    trend = context.catalog.get(trend_id)
    if not trend:
        raise HTTPException(status_code=404, detail="Trend not found")
    return trend.to_payload()


@app.post("/api/trends/updates")
async def ingest_trend_update(req: TrendUpdateRequest, x_api_key: Optional[str] = Header(None)) -> Dict[str, object]:
    _require_api_key(x_api_key)
    context.feed.publish(
        TrendUpdate(
            type=req.type,
            trend_id=req.trendId,
            new_cases=req.newCases,
            regions=list(req.regions),
            tactic=req.tactic,
        )
    )
    return {"status": "queued", "pending": context.feed.pending()}


@app.get("/api/model/stats", response_model=ModelStats)
async def model_stats(x_api_key: Optional[str] = Header(None)) -> ModelStats:
    _require_api_key(x_api_key)
    store = context.training_store
    return ModelStats(
        trainingExamples=len(store.list_examples()),
        verifiedExamples=len(store.verified_examples()),
        accuracy=round(store.accuracy(), 4),
        patterns=len(context.registry),
        weightsVersion=context.adapter.current().version,
        lastAdaptedAt=store.last_adapted_at,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
