import calendar
import dataclasses
import logging
import threading
import time
from typing import Dict, Iterable, List, Optional

from models.trends import ScamTrend, TrendUpdate

logger = logging.getLogger(__name__)


def _date_to_ts(value: str) -> float:
    return float(calendar.timegm(time.strptime(value, "%Y-%m-%d")))


def seed_trends(now: Optional[float] = None) -> List[ScamTrend]:
    now = now if now is not None else time.time()
    return [
        ScamTrend(
            id="social-security-phone-scam",
            title="Social Security Administration Phone Scam",
            description="Scammers impersonating SSA officials claiming account suspension or legal action",
            risk_level="high",
            keywords=["social security", "SSA", "suspended", "arrest warrant", "federal crime"],
            tactics=["Caller ID spoofing", "Urgency creation", "Fear tactics", "Official impersonation"],
            target_demographics=["Senior citizens", "Recent immigrants", "Social Security recipients"],
            reported_cases=847,
            first_seen=_date_to_ts("2024-01-15"),
            last_updated=now,
            regions=["Nationwide", "High activity in FL, TX, CA"],
            examples=[
                "Your Social Security number has been suspended due to suspicious activity",
                "There is an arrest warrant issued in your name for federal crimes",
            ],
            prevention_tips=[
                "SSA will never call to threaten arrest or demand immediate payment",
                "Hang up and call SSA directly at 1-800-772-1213",
                "Government agencies do not accept gift cards as payment",
            ],
        ),
        ScamTrend(
            id="ai-voice-cloning-scam",
            title="AI Voice Cloning Emergency Scam",
            description="Scammers using AI to clone voices of family members in fake emergency calls",
            risk_level="critical",
            keywords=["emergency", "accident", "hospital", "bail money", "urgent help"],
            tactics=["AI voice synthesis", "Emotional manipulation", "Time pressure", "Family impersonation"],
            target_demographics=["Parents", "Grandparents", "Family members"],
            reported_cases=234,
            first_seen=_date_to_ts("2024-08-01"),
            last_updated=now,
            regions=["Emerging nationwide", "High reports in urban areas"],
            examples=[
                "Grandma, I've been in an accident and need bail money right now",
                "Mom, I'm in the hospital and need you to send money immediately",
            ],
            prevention_tips=[
                "Ask specific questions only the real person would know",
                "Hang up and call the person directly on their known number",
                "Establish a family code word for real emergencies",
            ],
        ),
        ScamTrend(
            id="fake-tech-support",
            title="Fake Microsoft/Apple Tech Support",
            description="Pop-up warnings and cold calls claiming computer infection or security breach",
            risk_level="high",
            keywords=["Microsoft", "Apple", "virus detected", "security breach", "tech support"],
            tactics=["Pop-up warnings", "Remote access requests", "Fake error messages", "Urgency tactics"],
            target_demographics=["Computer users", "Seniors", "Less tech-savvy individuals"],
            reported_cases=1205,
            first_seen=_date_to_ts("2023-06-01"),
            last_updated=now,
            regions=["Nationwide", "International call centers"],
            examples=[
                "Warning: Your computer has been infected with a virus",
                "Microsoft has detected unusual activity on your account",
            ],
            prevention_tips=[
                "Microsoft and Apple never make unsolicited calls",
                "Close pop-up windows without clicking anything",
                "Contact tech support through official websites only",
            ],
        ),
    ]


def _merge_unique(existing: List[str], extra: Iterable[str]) -> List[str]:
    merged = list(existing)
    for item in extra:
        if item and item not in merged:
            merged.append(item)
    return merged


class TrendCatalog:
    """
    Keyed trend records. Updates swap in a new frozen record under the lock,
    so readers always hold a complete old or new version of a trend.
    """

    def __init__(self, trends: Optional[Iterable[ScamTrend]] = None):
        self._trends: Dict[str, ScamTrend] = {}
        self._last_change: Dict[str, str] = {}
        self._lock = threading.Lock()
        for trend in trends if trends is not None else seed_trends():
            self._trends[trend.id] = trend

    def get(self, trend_id: str) -> Optional[ScamTrend]:
        with self._lock:
            return self._trends.get(trend_id)

    def __contains__(self, trend_id: str) -> bool:
        with self._lock:
            return trend_id in self._trends

    def list_trends(self) -> List[ScamTrend]:
        with self._lock:
            return list(self._trends.values())

    def list_current(self) -> List[ScamTrend]:
        return sorted(self.list_trends(), key=lambda t: t.last_updated, reverse=True)

    def last_change(self, trend_id: str) -> Optional[str]:
        with self._lock:
            return self._last_change.get(trend_id)

    def search(self, query: str) -> List[ScamTrend]:
        term = (query or "").strip().lower()
        if not term:
            return []
        return [
            trend
            for trend in self.list_trends()
            if term in trend.title.lower()
            or term in trend.description.lower()
            or any(term in k.lower() for k in trend.keywords)
            or any(term in t.lower() for t in trend.tactics)
        ]

    def apply_update(self, update: TrendUpdate, now: Optional[float] = None) -> Optional[ScamTrend]:
        now = now if now is not None else time.time()
        with self._lock:
            trend = self._trends.get(update.trend_id)
            if trend is None:
                logger.warning("Dropping %s update for unknown trend %s", update.type, update.trend_id)
                return None

            changes: Dict[str, object] = {"last_updated": now}
            if update.type == "case_increase":
                changes["reported_cases"] = trend.reported_cases + max(0, int(update.new_cases))
                if update.regions:
                    changes["regions"] = _merge_unique(trend.regions, update.regions)
            elif update.type == "new_tactic":
                if update.tactic and update.tactic not in trend.tactics:
                    changes["tactics"] = trend.tactics + [update.tactic]
            elif update.type == "geographic_spread":
                changes["regions"] = _merge_unique(trend.regions, update.regions)
            else:
                logger.warning("Dropping unsupported update type %s for %s", update.type, update.trend_id)
                return None

            updated = dataclasses.replace(trend, **changes)
            self._trends[trend.id] = updated
            self._last_change[trend.id] = update.type
            return updated

    def apply_updates(self, updates: Iterable[TrendUpdate], now: Optional[float] = None) -> int:
        applied = 0
        for update in updates:
            if self.apply_update(update, now=now) is not None:
                applied += 1
        return applied
