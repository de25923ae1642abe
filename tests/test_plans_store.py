import os
import sys
import tempfile
import threading
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("COACH_LLM_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

from career_coach.core.store import CoachStore  # noqa: E402
from career_coach.services.plans import (  # noqa: E402
    check_access,
    current_usage,
    load_plans,
    process_payment,
    record_usage,
    system_analytics,
    user_analytics,
)


class StoreTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = CoachStore(os.path.join(self._tmp.name, "coach.db"))

    def tearDown(self):
        self.store.close()
        self._tmp.cleanup()


class PlanCatalogTests(unittest.TestCase):
    def test_catalog_has_three_plans(self):
        plans = load_plans()
        self.assertEqual(set(plans), {"free", "starter", "professional"})
        self.assertEqual(plans["starter"].price, 9.99)
        self.assertEqual(plans["free"].limit_for("chat"), 10)
        self.assertEqual(plans["professional"].limit_for("chat"), -1)
        self.assertEqual(plans["free"].limit_for("jobSearch"), -1)


class AccessTests(StoreTestCase):
    def test_first_metered_use_starts_trial(self):
        decision = check_access(self.store, "u1", "chat")
        self.assertTrue(decision.access)
        self.assertEqual(decision.days_remaining, 7)
        subscription = self.store.get_subscription("u1")
        self.assertEqual(subscription["plan"], "free")
        self.assertEqual(subscription["usage"]["chat"], 0)

    def test_always_allowed_features_skip_the_trial(self):
        for feature in ("resumeAnalysis", "coverLetter"):
            with self.subTest(feature=feature):
                self.assertTrue(check_access(self.store, "u1", feature).access)
        self.assertIsNone(self.store.get_subscription("u1"))

    def test_chat_limit_on_free_trial(self):
        for _ in range(10):
            self.assertTrue(check_access(self.store, "u1", "chat").access)
            record_usage(self.store, "u1", "chat")
        decision = check_access(self.store, "u1", "chat")
        self.assertFalse(decision.access)
        self.assertFalse(decision.trial_expired)
        self.assertEqual(decision.message, "Free trial limit reached for chat. Please upgrade to continue.")
        self.assertEqual(current_usage(self.store, "u1")["chat"], 10)

    def test_expired_trial_denies_access(self):
        check_access(self.store, "u1", "chat")
        later = datetime.now(timezone.utc) + timedelta(days=8)
        decision = check_access(self.store, "u1", "interviewPrep", now=later)
        self.assertFalse(decision.access)
        self.assertTrue(decision.trial_expired)
        self.assertEqual(decision.days_remaining, 0)
        self.assertIn("7-day free trial has expired", decision.message)

    def test_paid_plan_limits(self):
        process_payment(self.store, "u1", "starter")
        for _ in range(10):
            record_usage(self.store, "u1", "careerPlanning")
        decision = check_access(self.store, "u1", "careerPlanning")
        self.assertFalse(decision.access)
        self.assertEqual(decision.message, "Usage limit reached for careerPlanning. Please upgrade your plan.")
        self.assertTrue(check_access(self.store, "u1", "chat").access)

    def test_unmetered_feature_never_denied(self):
        for _ in range(30):
            record_usage(self.store, "u1", "jobSearch")
        self.assertTrue(check_access(self.store, "u1", "jobSearch").access)


class PaymentTests(StoreTestCase):
    def test_invalid_plan(self):
        result = process_payment(self.store, "u1", "platinum")
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Invalid plan selected")
        self.assertEqual(self.store.total_revenue(), 0.0)

    def test_upgrade_resets_usage_and_records_revenue(self):
        check_access(self.store, "u1", "chat")
        record_usage(self.store, "u1", "chat")
        result = process_payment(self.store, "u1", "starter", "card")
        self.assertTrue(result.success)
        self.assertEqual(result.message, "Successfully upgraded to Starter Plan")
        subscription = self.store.get_subscription("u1")
        self.assertEqual(subscription["plan"], "starter")
        self.assertIsNone(subscription["trial_end_date"])
        self.assertEqual(subscription["usage"]["chat"], 0)
        self.assertEqual(self.store.total_revenue(), 9.99)


class AnalyticsTests(StoreTestCase):
    def test_user_analytics_requires_activity(self):
        self.assertIsNone(user_analytics(self.store, "nobody"))

    def test_user_and_system_analytics(self):
        user = self.store.create_user(name="Jane", email="Jane@Example.com", password_hash="x")
        check_access(self.store, user["id"], "chat")
        record_usage(self.store, user["id"], "chat")
        record_usage(self.store, user["id"], "resumeAnalysis")
        record_usage(self.store, "other", "resumeAnalysis")

        analytics = user_analytics(self.store, user["id"])
        self.assertEqual(analytics["totalUsage"], 2)
        self.assertEqual(analytics["featuresUsed"], ["chat", "resumeAnalysis"])
        self.assertEqual(analytics["currentPlan"], "free")
        self.assertEqual(analytics["usage"]["chat"], 1)
        self.assertEqual(analytics["daysRemaining"], 7)

        stats = system_analytics(self.store)
        self.assertEqual(stats["totalUsers"], 1)
        self.assertEqual(stats["activeUsers"], 2)
        self.assertEqual(stats["featureStats"]["resumeAnalysis"], {"totalUsage": 2, "uniqueUsers": 2})
        self.assertEqual(stats["totalRevenue"], 0.0)


class StoreTests(StoreTestCase):
    def test_duplicate_email_rejected(self):
        self.store.create_user(name="Jane", email="jane@example.com", password_hash="x")
        with self.assertRaises(ValueError):
            self.store.create_user(name="Other", email="JANE@example.com", password_hash="y")

    def test_chat_memory_keeps_latest_turns_in_order(self):
        for index in range(5):
            self.store.append_chat("u1", "user", f"message {index}")
        recent = self.store.recent_chat("u1", limit=3)
        self.assertEqual([item["content"] for item in recent], ["message 2", "message 3", "message 4"])

    def test_context_update_skips_none(self):
        self.store.update_context("u1", resume="My resume", target_role="Engineer")
        context = self.store.update_context("u1", resume=None, target_role="Manager")
        self.assertEqual(context, {"resume": "My resume", "target_role": "Manager"})

    def test_existing_subscription_is_not_replaced(self):
        now = datetime.now(timezone.utc)
        self.store.save_subscription("u1", plan="starter", start_date=now, trial_end_date=None, usage={"chat": 4})
        stored = self.store.ensure_subscription(
            "u1", plan="free", start_date=now, trial_end_date=now + timedelta(days=7), usage={"chat": 0}
        )
        self.assertEqual(stored["plan"], "starter")
        self.assertEqual(stored["usage"], {"chat": 4})

    def test_increment_usage_without_subscription(self):
        self.assertIsNone(self.store.increment_usage("nobody", "chat"))
        self.assertEqual(record_usage(self.store, "nobody", "chat"), {})

    def test_concurrent_usage_is_not_lost(self):
        check_access(self.store, "u1", "interviewPrep")

        def worker():
            for _ in range(20):
                record_usage(self.store, "u1", "interviewPrep")

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(current_usage(self.store, "u1")["interviewPrep"], 100)


if __name__ == "__main__":
    unittest.main()
