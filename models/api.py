from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ScoreContext(BaseModel):
    channel: Optional[str] = None
    locale: Optional[str] = None
    language: Optional[str] = None
    priority: Literal["low", "medium", "high", "critical"] = "medium"


class ScoreRequest(BaseModel):
    text: str = ""
    context: ScoreContext = Field(default_factory=ScoreContext)


class TrendMatchSummary(BaseModel):
    id: str
    title: str
    riskLevel: str
    reportedCases: int


class ExplanationFactor(BaseModel):
    factor: str
    label: str
    weight: float
    contribution: float


class ScoreResponse(BaseModel):
    riskScore: float
    confidence: float
    label: Literal["scam", "legitimate"]
    isScam: bool
    source: Literal["local", "blended"]
    localScore: float
    externalScore: Optional[float] = None
    topSignals: List[str] = Field(default_factory=list)
    explanation: List[ExplanationFactor] = Field(default_factory=list)
    matchedTrends: List[TrendMatchSummary] = Field(default_factory=list)
    signals: Dict[str, float] = Field(default_factory=dict)


class FeedbackRequest(BaseModel):
    text: str
    label: Literal["scam", "legitimate"]
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)


class FeedbackResponse(BaseModel):
    status: str
    exampleId: str
    adapted: bool


class TrendUpdateRequest(BaseModel):
    type: Literal["case_increase", "new_tactic", "geographic_spread"]
    trendId: str
    newCases: int = Field(default=0, ge=0)
    regions: List[str] = Field(default_factory=list)
    tactic: Optional[str] = None


class ModelStats(BaseModel):
    trainingExamples: int
    verifiedExamples: int
    accuracy: float
    patterns: int
    weightsVersion: int
    lastAdaptedAt: Optional[float] = None
