import time
import unittest
from unittest import mock

import requests

from detection.external_classifier import ExternalClassifier
from detection.llm_clients import GeminiClient, OpenAIClient, extract_json_object
from detection.scoring_model import ScoringModel
from models.api import ScoreContext
from models.trends import TrendAlert
from services.blending import BlendingController, blend_scores, merge_signals, round_half_up
from services.notification_service import NotificationService
from services.training_store import TrainingStore
from services.trend_catalog import TrendCatalog
from services.trend_matcher import TrendMatcher
from services.weight_adapter import WeightAdapter


SSA_SCAM = (
    "URGENT: Your Social Security benefits will be suspended immediately unless you call "
    "1-800-555-0123 to verify your account information."
)


class _DummyProvider:
    name = "dummy"

    def __init__(self, payload, delay: float = 0.0):
        self.api_key = "x"
        self._payload = payload
        self._delay = delay
        self.calls = 0

    def complete_json(self, system, user, max_tokens=300):
        self.calls += 1
        if self._delay:
            time.sleep(self._delay)
        return self._payload


def _response(status: int, body):
    resp = mock.Mock()
    resp.status_code = status
    resp.text = str(body)
    resp.json.return_value = body
    return resp


class BlendingTests(unittest.TestCase):
    def _controller(self, provider=None, timeout=2.0, auto_label=False, store=None, max_workers=4):
        adapter = WeightAdapter(ScoringModel())
        external = ExternalClassifier([provider]) if provider else None
        return BlendingController(
            adapter,
            TrendMatcher(TrendCatalog()),
            external,
            store,
            external_timeout_seconds=timeout,
            auto_label_enabled=auto_label,
            max_workers=max_workers,
        )

    def test_blend_formula(self):
        self.assertEqual(blend_scores(80, 40), 52)
        self.assertEqual(round_half_up(52.5), 53)
        self.assertEqual(blend_scores(0, 0), 0)
        self.assertEqual(blend_scores(100, 100), 100)

    def test_high_priority_blends_external_score(self):
        provider = _DummyProvider({"scam_score": 40, "top_signals": ["Threat of suspension"]})
        controller = self._controller(provider)
        result = controller.score(SSA_SCAM, ScoreContext(priority="high"))
        self.assertEqual(result.source, "blended")
        self.assertEqual(result.risk_score, blend_scores(result.local.risk_score, 40))
        self.assertEqual(result.is_scam, result.risk_score > 50)
        self.assertEqual(provider.calls, 1)

    def test_low_priority_skips_external(self):
        provider = _DummyProvider({"scam_score": 0})
        controller = self._controller(provider)
        result = controller.score(SSA_SCAM, ScoreContext(priority="medium"))
        self.assertEqual(result.source, "local")
        self.assertEqual(result.risk_score, result.local.risk_score)
        self.assertEqual(provider.calls, 0)

    def test_external_failure_falls_back_to_local(self):
        for payload in (None, {"scam_score": "high"}, {"top_signals": []}):
            controller = self._controller(_DummyProvider(payload))
            result = controller.score(SSA_SCAM, ScoreContext(priority="critical"))
            self.assertEqual(result.source, "local")
            self.assertEqual(result.risk_score, result.local.risk_score)

    def test_external_timeout_falls_back_to_local(self):
        controller = self._controller(_DummyProvider({"scam_score": 10}, delay=1.0), timeout=0.1)
        with self.assertLogs("services.blending", level="WARNING"):
            result = controller.score(SSA_SCAM, ScoreContext(priority="high"))
        self.assertEqual(result.source, "local")
        self.assertGreaterEqual(result.risk_score, 70)

    def test_timed_out_requests_do_not_call_external_later(self):
        provider = _DummyProvider({"scam_score": 10}, delay=1.0)
        controller = self._controller(provider, timeout=0.1, max_workers=1)
        with self.assertLogs("services.blending", level="WARNING"):
            results = [controller.score(SSA_SCAM, ScoreContext(priority="high")) for _ in range(4)]
        self.assertEqual({r.source for r in results}, {"local"})
        time.sleep(1.5)
        self.assertEqual(provider.calls, 1)
        controller.shutdown()

    def test_signals_lead_with_trend_title_and_cap_at_five(self):
        provider = _DummyProvider({"scam_score": 90, "top_signals": ["Spoofed caller id", "Fear tactics"]})
        result = self._controller(provider).score(SSA_SCAM, ScoreContext(priority="high"))
        self.assertEqual(result.top_signals[0], "Social Security Administration Phone Scam")
        self.assertLessEqual(len(result.top_signals), 5)
        self.assertEqual(len(result.top_signals), len({s.lower() for s in result.top_signals}))
        self.assertEqual(result.matched_trends[0].id, "social-security-phone-scam")

    def test_merge_signals(self):
        self.assertEqual(merge_signals(["a", "b"], ["B", "c"]), ["a", "b", "c"])
        self.assertEqual(len(merge_signals([str(i) for i in range(10)], [])), 5)

    def test_empty_text(self):
        result = self._controller().score("", None)
        self.assertEqual(result.risk_score, 0)
        self.assertEqual(result.confidence, 0.5)
        self.assertEqual(result.label, "legitimate")
        self.assertEqual(result.top_signals, [])

    def test_idempotent_without_weight_changes(self):
        controller = self._controller()
        first = controller.score(SSA_SCAM, ScoreContext())
        second = controller.score(SSA_SCAM, ScoreContext())
        self.assertEqual(first, second)

    def test_confident_predictions_are_auto_labeled(self):
        adapter = WeightAdapter(ScoringModel())
        store = TrainingStore(adapter, examples=[])
        controller = BlendingController(adapter, TrendMatcher(TrendCatalog()), None, store)
        controller.score(SSA_SCAM, ScoreContext())
        examples = store.list_examples()
        self.assertEqual(len(examples), 1)
        self.assertEqual(examples[0].label, "scam")
        self.assertEqual(examples[0].source, "auto")


class ExternalClassifierTests(unittest.TestCase):
    def test_falls_through_to_next_provider(self):
        first = _DummyProvider({"verdict": "?"})
        second = _DummyProvider({"scam_score": 120, "top_signals": "Gift card request"})
        assessment = ExternalClassifier([first, second]).classify("pay with gift card")
        self.assertEqual(assessment.score, 100.0)
        self.assertEqual(assessment.signals, ["Gift card request"])

    def test_unavailable_without_keys(self):
        classifier = ExternalClassifier([OpenAIClient(api_key="", model="m", timeout_seconds=1), None])
        self.assertFalse(classifier.available)
        self.assertIsNone(classifier.classify("text"))

    def test_openai_client_parses_json_content(self):
        body = {"choices": [{"message": {"content": '{"scam_score": 72, "top_signals": ["x"]}'}}]}
        client = OpenAIClient(api_key="k", model="m", timeout_seconds=1)
        with mock.patch("detection.llm_clients.requests.post", return_value=_response(200, body)):
            self.assertEqual(client.complete_json("s", "u"), {"scam_score": 72, "top_signals": ["x"]})
        with mock.patch("detection.llm_clients.requests.post", return_value=_response(500, {})):
            self.assertIsNone(client.complete_json("s", "u"))
        with mock.patch("detection.llm_clients.requests.post", side_effect=requests.Timeout("slow")):
            self.assertIsNone(client.complete_json("s", "u"))

    def test_gemini_client_parses_candidates(self):
        body = {"candidates": [{"content": {"parts": [{"text": 'Result: {"scam_score": 15}'}]}}]}
        client = GeminiClient(api_key="k", model="m", timeout_seconds=1)
        with mock.patch("detection.llm_clients.requests.post", return_value=_response(200, body)):
            self.assertEqual(client.complete_json("s", "u"), {"scam_score": 15})
        with mock.patch("detection.llm_clients.requests.post", return_value=_response(200, {"candidates": []})):
            self.assertIsNone(client.complete_json("s", "u"))

    def test_extract_json_object(self):
        self.assertIsNone(extract_json_object("no json"))
        self.assertIsNone(extract_json_object("{broken"))
        self.assertEqual(extract_json_object('x {"a": 1} y'), {"a": 1})


class NotificationServiceTests(unittest.TestCase):
    def _alert(self):
        return TrendAlert(
            id="alert_1",
            trend_id="ai-voice-cloning-scam",
            alert_type="escalation",
            severity="critical",
            title="Rising Activity",
            message="msg",
            action_required=True,
            timestamp=1.0,
        )

    def _service(self, url="http://example.invalid/hook"):
        return NotificationService(
            webhook_url=url,
            timeout_seconds=1,
            max_attempts=2,
            backoff_base_seconds=0,
            max_workers=1,
        )

    def test_retries_until_success(self):
        service = self._service()
        responses = [_response(503, {}), _response(200, {})]
        with mock.patch("services.notification_service.requests.post", side_effect=responses) as post:
            ok = service._send_with_retry("alert_1", service.build_payload(self._alert()))
        self.assertTrue(ok)
        self.assertEqual(post.call_count, 2)

    def test_gives_up_after_max_attempts(self):
        service = self._service()
        with mock.patch(
            "services.notification_service.requests.post",
            side_effect=requests.ConnectionError("down"),
        ):
            with self.assertLogs("services.notification_service", level="WARNING"):
                ok = service._send_with_retry("alert_1", service.build_payload(self._alert()))
        self.assertFalse(ok)

    def test_without_webhook_only_logs(self):
        service = self._service(url="")
        with mock.patch("services.notification_service.requests.post") as post:
            service.deliver(self._alert())
        post.assert_not_called()


if __name__ == "__main__":
    unittest.main()
