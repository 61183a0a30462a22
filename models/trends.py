from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

RiskLevel = Literal["low", "medium", "high", "critical"]
AlertType = Literal["new_trend", "escalation", "geographic_spread", "tactic_change"]
AlertSeverity = Literal["info", "warning", "urgent", "critical"]
UpdateType = Literal["case_increase", "new_tactic", "geographic_spread"]


@dataclass(frozen=True)
class ScamTrend:
    id: str
    title: str
    description: str
    risk_level: RiskLevel
    keywords: List[str]
    tactics: List[str]
    target_demographics: List[str]
    reported_cases: int
    first_seen: float
    last_updated: float
    regions: List[str]
    examples: List[str] = field(default_factory=list)
    prevention_tips: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "riskLevel": self.risk_level,
            "keywords": list(self.keywords),
            "tactics": list(self.tactics),
            "targetDemographics": list(self.target_demographics),
            "reportedCases": self.reported_cases,
            "firstSeen": self.first_seen,
            "lastUpdated": self.last_updated,
            "regions": list(self.regions),
            "examples": list(self.examples),
            "preventionTips": list(self.prevention_tips),
        }

    @staticmethod
    def from_payload(payload: Dict[str, object]) -> "ScamTrend":
        return ScamTrend(
            id=str(payload["id"]),
            title=str(payload["title"]),
            description=str(payload.get("description", "")),
            risk_level=payload.get("riskLevel", "medium"),
            keywords=list(payload.get("keywords") or []),
            tactics=list(payload.get("tactics") or []),
            target_demographics=list(payload.get("targetDemographics") or []),
            reported_cases=int(payload.get("reportedCases") or 0),
            first_seen=float(payload.get("firstSeen") or 0.0),
            last_updated=float(payload.get("lastUpdated") or 0.0),
            regions=list(payload.get("regions") or []),
            examples=list(payload.get("examples") or []),
            prevention_tips=list(payload.get("preventionTips") or []),
        )


@dataclass(frozen=True)
class TrendAlert:
    id: str
    trend_id: str
    alert_type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    action_required: bool
    timestamp: float

    def to_payload(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "trendId": self.trend_id,
            "alertType": self.alert_type,
            "severity": self.severity,
            "title": self.title,
            "message": self.message,
            "actionRequired": self.action_required,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class TrendUpdate:
    type: UpdateType
    trend_id: str
    new_cases: int = 0
    regions: List[str] = field(default_factory=list)
    tactic: Optional[str] = None
