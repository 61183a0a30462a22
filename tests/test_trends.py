import os
import tempfile
import time
import unittest

from detection.scoring_model import default_weights
from models.trends import TrendUpdate
from services.alert_generator import AlertGenerator
from services.snapshot_store import SnapshotStore
from services.trend_catalog import TrendCatalog, seed_trends
from services.trend_matcher import TrendMatcher, match_score, tactic_matches
from services.trend_monitor import TrendEventFeed, TrendMonitor


NOW = 1_760_000_000.0


class TrendCatalogTests(unittest.TestCase):
    def setUp(self):
        self.catalog = TrendCatalog(seed_trends(now=NOW))

    def test_seeded_trends(self):
        ids = {t.id for t in self.catalog.list_trends()}
        self.assertEqual(ids, {"social-security-phone-scam", "ai-voice-cloning-scam", "fake-tech-support"})

    def test_case_increase_merges_regions(self):
        updated = self.catalog.apply_update(
            TrendUpdate(
                type="case_increase",
                trend_id="ai-voice-cloning-scam",
                new_cases=23,
                regions=["New York", "California", "Emerging nationwide"],
            ),
            now=NOW + 10,
        )
        self.assertEqual(updated.reported_cases, 257)
        self.assertEqual(
            updated.regions,
            ["Emerging nationwide", "High reports in urban areas", "New York", "California"],
        )
        self.assertEqual(updated.last_updated, NOW + 10)
        self.assertEqual(self.catalog.last_change("ai-voice-cloning-scam"), "case_increase")

    def test_new_tactic_is_appended_once(self):
        update = TrendUpdate(
            type="new_tactic",
            trend_id="social-security-phone-scam",
            tactic="Text message follow-up after phone call",
        )
        self.catalog.apply_update(update)
        self.catalog.apply_update(update)
        tactics = self.catalog.get("social-security-phone-scam").tactics
        self.assertEqual(tactics.count("Text message follow-up after phone call"), 1)

    def test_unknown_trend_update_is_dropped(self):
        before = self.catalog.list_trends()
        with self.assertLogs("services.trend_catalog", level="WARNING"):
            result = self.catalog.apply_update(TrendUpdate(type="case_increase", trend_id="nope", new_cases=5))
        self.assertIsNone(result)
        self.assertEqual(self.catalog.list_trends(), before)

    def test_readers_keep_a_consistent_record(self):
        held = self.catalog.get("fake-tech-support")
        self.catalog.apply_update(TrendUpdate(type="case_increase", trend_id="fake-tech-support", new_cases=5))
        self.assertEqual(held.reported_cases, 1205)
        self.assertEqual(self.catalog.get("fake-tech-support").reported_cases, 1210)

    def test_search(self):
        self.assertEqual([t.id for t in self.catalog.search("VOICE")], ["ai-voice-cloning-scam"])
        self.assertEqual([t.id for t in self.catalog.search("remote access")], ["fake-tech-support"])
        self.assertEqual([t.id for t in self.catalog.search("ssa official")], ["social-security-phone-scam"])
        self.assertEqual(
            [t.id for t in self.catalog.search("ssa")], ["social-security-phone-scam", "fake-tech-support"]
        )
        self.assertEqual(self.catalog.search(""), [])
        self.assertEqual(self.catalog.search("zebra"), [])

    def test_list_current_orders_by_last_update(self):
        self.catalog.apply_update(
            TrendUpdate(type="geographic_spread", trend_id="fake-tech-support", regions=["Ohio"]),
            now=NOW + 100,
        )
        self.assertEqual(self.catalog.list_current()[0].id, "fake-tech-support")


class TrendMatcherTests(unittest.TestCase):
    def setUp(self):
        self.catalog = TrendCatalog(seed_trends(now=NOW))
        self.matcher = TrendMatcher(self.catalog)

    def test_two_keywords_always_match(self):
        for trend in self.catalog.list_trends():
            text = f"Notice about {trend.keywords[0]} and {trend.keywords[1]}"
            ids = [t.id for t in self.matcher.match(text)]
            self.assertIn(trend.id, ids)

    def test_ranked_by_reported_cases(self):
        text = (
            "Microsoft tech support: your Social Security number was suspended. "
            "There was an accident and you must go to the hospital."
        )
        ids = [t.id for t in self.matcher.match(text)]
        self.assertEqual(
            ids,
            ["fake-tech-support", "social-security-phone-scam", "ai-voice-cloning-scam"],
        )

    def test_tactic_hits_score_one_point(self):
        trend = self.catalog.get("ai-voice-cloning-scam")
        self.assertEqual(match_score("please help me", trend), 1)
        self.assertEqual(self.matcher.match("please help me"), [])
        self.assertTrue(tactic_matches("call the police", "Official impersonation"))
        self.assertFalse(tactic_matches("call the police", "AI voice synthesis"))

    def test_empty_text_matches_nothing(self):
        self.assertEqual(self.matcher.match(""), [])


class AlertGeneratorTests(unittest.TestCase):
    def setUp(self):
        self.catalog = TrendCatalog(seed_trends(now=NOW))
        self.delivered = []
        self.alerts = AlertGenerator(self.catalog, self.delivered.append, max_alerts=50)

    def test_only_recent_critical_trends_alert(self):
        created = self.alerts.generate(now=NOW + 60)
        self.assertEqual([a.trend_id for a in created], ["ai-voice-cloning-scam"])
        alert = created[0]
        self.assertEqual(alert.severity, "critical")
        self.assertTrue(alert.action_required)
        self.assertEqual(alert.alert_type, "escalation")
        self.assertEqual(alert.title, "Rising Activity: AI Voice Cloning Emergency Scam")
        self.assertIn("emergency, accident, hospital", alert.message)
        self.assertEqual(self.delivered, created)

    def test_stale_trends_do_not_alert(self):
        self.assertEqual(self.alerts.generate(now=NOW + 2 * 60 * 60), [])

    def test_alert_type_follows_last_change(self):
        self.catalog.apply_update(
            TrendUpdate(type="new_tactic", trend_id="ai-voice-cloning-scam", tactic="Deepfake video"),
            now=NOW,
        )
        created = self.alerts.generate(now=NOW + 1)
        self.assertEqual(created[0].alert_type, "tactic_change")

    def test_alert_list_is_capped_newest_first(self):
        for i in range(60):
            self.alerts.generate(now=NOW + i)
        alerts = self.alerts.all_alerts()
        self.assertEqual(len(alerts), 50)
        self.assertEqual(alerts[0].timestamp, NOW + 59)
        self.assertEqual(alerts[-1].timestamp, NOW + 10)

    def test_active_alerts_exclude_older_than_a_day(self):
        self.alerts.generate(now=NOW)
        self.assertEqual(len(self.alerts.active_alerts(now=NOW + 60 * 60)), 1)
        self.assertEqual(self.alerts.active_alerts(now=NOW + 25 * 60 * 60), [])
        self.assertEqual(len(self.alerts.all_alerts()), 1)

    def test_alerts_reference_catalog_trends(self):
        for alert in self.alerts.generate(now=NOW):
            self.assertIsNotNone(self.catalog.get(alert.trend_id))

    def test_sink_failure_is_not_fatal(self):
        def broken(alert):
            raise RuntimeError("sink down")

        alerts = AlertGenerator(self.catalog, broken)
        with self.assertLogs("services.alert_generator", level="WARNING"):
            created = alerts.generate(now=NOW)
        self.assertEqual(len(created), 1)
        self.assertEqual(len(alerts.all_alerts()), 1)


class TrendMonitorTests(unittest.TestCase):
    def test_tick_applies_feed_then_alerts(self):
        catalog = TrendCatalog(seed_trends(now=NOW - 3 * 60 * 60))
        alerts = AlertGenerator(catalog)
        feed = TrendEventFeed()
        monitor = TrendMonitor(catalog, alerts, feed, interval_seconds=30)

        self.assertEqual(monitor.tick(now=NOW), [])

        feed.publish(TrendUpdate(type="case_increase", trend_id="ai-voice-cloning-scam", new_cases=23))
        feed.publish(TrendUpdate(type="case_increase", trend_id="unknown", new_cases=1))
        created = monitor.tick(now=NOW)

        self.assertEqual(feed.pending(), 0)
        self.assertEqual([a.trend_id for a in created], ["ai-voice-cloning-scam"])
        self.assertEqual(catalog.get("ai-voice-cloning-scam").reported_cases, 257)

    def test_tick_writes_snapshot_on_interval(self):
        calls = []
        catalog = TrendCatalog(seed_trends(now=NOW))
        monitor = TrendMonitor(
            catalog,
            AlertGenerator(catalog),
            TrendEventFeed(),
            snapshot=lambda: calls.append(1),
            snapshot_interval_seconds=60,
        )
        monitor.tick(now=time.time() + 10)
        self.assertEqual(calls, [])
        monitor.tick(now=time.time() + 120)
        self.assertEqual(calls, [1])

    def test_start_and_stop(self):
        catalog = TrendCatalog(seed_trends(now=NOW))
        monitor = TrendMonitor(catalog, AlertGenerator(catalog), TrendEventFeed(), interval_seconds=60)
        monitor.start()
        self.assertTrue(monitor.running)
        monitor.stop()
        self.assertFalse(monitor.running)


class SnapshotStoreTests(unittest.TestCase):
    def test_save_and_load(self):
        with tempfile.TemporaryDirectory() as tmp:
            store = SnapshotStore(os.path.join(tmp, "state", "snapshot.json"))
            weights = default_weights()
            weights.values["urgency"] = 0.31
            weights.version = 4
            trends = seed_trends(now=NOW)

            self.assertTrue(store.save(weights, trends))

            loaded = store.load_weights()
            self.assertEqual(loaded.version, 4)
            self.assertEqual(loaded.values["urgency"], 0.31)
            self.assertEqual(store.load_trends(), trends)

    def test_disabled_or_missing(self):
        self.assertFalse(SnapshotStore("").save(default_weights(), []))
        self.assertIsNone(SnapshotStore("").load_weights())
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "broken.json")
            with open(path, "w", encoding="utf-8") as f:
                f.write("{not json")
            store = SnapshotStore(path)
            with self.assertLogs("services.snapshot_store", level="WARNING"):
                self.assertIsNone(store.load_trends())


if __name__ == "__main__":
    unittest.main()
