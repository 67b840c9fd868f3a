import asyncio
import random
import threading
import unittest

import ai_fakes  # noqa: F401

from app.resilience.errors import ErrorCategory
from app.resilience.health import HealthMonitor, degradation_for
from app.resilience.models import DegradationLevel, OutcomeRecord


class DegradationLevelTests(unittest.TestCase):
    def test_levels_follow_consecutive_failures(self):
        monitor = HealthMonitor(max_consecutive_failures=5)
        expected = [
            DegradationLevel.NONE,
            DegradationLevel.PARTIAL,
            DegradationLevel.PARTIAL,
            DegradationLevel.PARTIAL,
            DegradationLevel.SEVERE,
            DegradationLevel.SEVERE,
        ]
        for level in expected:
            monitor.record_failure(ErrorCategory.NETWORK, "Connection reset")
            self.assertEqual(monitor.degradation_level(), level)

        self.assertFalse(monitor.is_healthy_enough())
        self.assertEqual(monitor.snapshot().consecutive_failures, 6)

    def test_any_success_restores_full_health(self):
        monitor = HealthMonitor(max_consecutive_failures=3)
        for _ in range(4):
            monitor.record_failure(ErrorCategory.TIMEOUT)
        self.assertEqual(monitor.degradation_level(), DegradationLevel.SEVERE)

        monitor.record_success(120)

        snapshot = monitor.snapshot()
        self.assertEqual(snapshot.degradation_level, DegradationLevel.NONE)
        self.assertEqual(snapshot.consecutive_failures, 0)
        self.assertTrue(monitor.is_healthy_enough())

    def test_threshold_of_one_skips_partial(self):
        self.assertEqual(degradation_for(0, 1), DegradationLevel.NONE)
        self.assertEqual(degradation_for(1, 1), DegradationLevel.SEVERE)

    def test_threshold_of_two_skips_partial(self):
        self.assertEqual(degradation_for(1, 2), DegradationLevel.NONE)
        self.assertEqual(degradation_for(2, 2), DegradationLevel.SEVERE)

    def test_invalid_threshold_is_rejected(self):
        with self.assertRaises(ValueError):
            HealthMonitor(max_consecutive_failures=0)

    def test_counters_stay_consistent_under_random_outcomes(self):
        rng = random.Random(11)
        monitor = HealthMonitor(max_consecutive_failures=4)
        for _ in range(300):
            if rng.random() < 0.6:
                monitor.record_failure(ErrorCategory.SERVER_ERROR)
            else:
                monitor.record_success(rng.randint(1, 500))
            snapshot = monitor.snapshot()
            self.assertEqual(
                snapshot.total_requests,
                snapshot.successful_requests + snapshot.failed_requests,
            )
            self.assertLessEqual(snapshot.consecutive_failures, snapshot.failed_requests)
            self.assertEqual(
                snapshot.degradation_level,
                degradation_for(snapshot.consecutive_failures, 4),
            )


class HealthRecordingTests(unittest.TestCase):
    def test_average_latency_is_a_running_mean(self):
        monitor = HealthMonitor()
        for latency in (100, 200, 600):
            monitor.record_success(latency)
        self.assertAlmostEqual(monitor.snapshot().average_response_time_ms, 300.0)

    def test_failures_do_not_move_the_average(self):
        monitor = HealthMonitor()
        monitor.record_success(100)
        monitor.record_failure(ErrorCategory.NETWORK)
        self.assertAlmostEqual(monitor.snapshot().average_response_time_ms, 100.0)

    def test_record_routes_outcomes(self):
        monitor = HealthMonitor()
        monitor.record(OutcomeRecord(success=True, latency_ms=40))
        monitor.record(
            OutcomeRecord(
                success=False,
                latency_ms=10,
                error_category=ErrorCategory.QUOTA_EXCEEDED,
                error_message="quota exceeded",
            )
        )

        snapshot = monitor.snapshot()
        self.assertEqual(snapshot.successful_requests, 1)
        self.assertEqual(snapshot.failed_requests, 1)
        self.assertEqual(snapshot.last_error.category, ErrorCategory.QUOTA_EXCEEDED)
        self.assertEqual(snapshot.last_error.message, "quota exceeded")
        self.assertEqual(snapshot.success_rate, 50.0)

    def test_snapshot_is_isolated_from_later_records(self):
        monitor = HealthMonitor()
        before = monitor.snapshot()
        monitor.record_failure(ErrorCategory.NETWORK)
        self.assertEqual(before.total_requests, 0)
        self.assertEqual(before.success_rate, 100.0)

    def test_snapshot_serializes_for_json(self):
        monitor = HealthMonitor()
        monitor.record_failure(ErrorCategory.TIMEOUT, "Request timeout after 30000ms")
        data = monitor.snapshot().as_dict()

        self.assertEqual(data["degradation_level"], "none")
        self.assertTrue(data["is_healthy"])
        self.assertEqual(data["success_rate"], 0.0)
        self.assertEqual(data["last_error"]["category"], "timeout")
        self.assertIsInstance(data["last_error"]["timestamp"], str)

    def test_reset_clears_everything(self):
        monitor = HealthMonitor(max_consecutive_failures=2)
        monitor.record_success(50)
        monitor.record_failure(ErrorCategory.NETWORK)
        monitor.record_failure(ErrorCategory.NETWORK)

        monitor.reset()

        snapshot = monitor.snapshot()
        self.assertEqual(snapshot.total_requests, 0)
        self.assertIsNone(snapshot.last_error)
        self.assertEqual(snapshot.degradation_level, DegradationLevel.NONE)

    def test_concurrent_records_are_not_lost(self):
        monitor = HealthMonitor(max_consecutive_failures=1000)

        def worker(index: int) -> None:
            for _ in range(200):
                if index % 2:
                    monitor.record_success(10)
                else:
                    monitor.record_failure(ErrorCategory.NETWORK)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        snapshot = monitor.snapshot()
        self.assertEqual(snapshot.total_requests, 1600)
        self.assertEqual(snapshot.successful_requests, 800)
        self.assertEqual(snapshot.failed_requests, 800)


class HealthProbeTests(unittest.IsolatedAsyncioTestCase):
    async def test_probe_with_expected_text_records_success(self):
        async def probe():
            return "Connection successful"

        monitor = HealthMonitor(probe=probe)
        monitor.record_failure(ErrorCategory.NETWORK)
        monitor.record_failure(ErrorCategory.NETWORK)

        healthy = await monitor.run_probe()

        self.assertTrue(healthy)
        snapshot = monitor.snapshot()
        self.assertEqual(snapshot.degradation_level, DegradationLevel.NONE)
        self.assertIsNotNone(snapshot.last_probe_at)

    async def test_probe_with_unexpected_text_counts_as_failure(self):
        async def probe():
            return "I am a teapot"

        monitor = HealthMonitor(probe=probe)
        self.assertFalse(await monitor.run_probe())
        snapshot = monitor.snapshot()
        self.assertEqual(snapshot.failed_requests, 1)
        self.assertEqual(snapshot.last_error.category, ErrorCategory.SERVER_ERROR)

    async def test_probe_exception_is_classified_not_raised(self):
        async def probe():
            raise ConnectionError("Connection refused")

        monitor = HealthMonitor(probe=probe)
        self.assertFalse(await monitor.run_probe())
        self.assertEqual(monitor.snapshot().last_error.category, ErrorCategory.NETWORK)

    async def test_probe_without_binding_is_a_noop(self):
        monitor = HealthMonitor()
        self.assertFalse(await monitor.run_probe())
        self.assertEqual(monitor.snapshot().total_requests, 0)

    async def test_periodic_probe_runs_until_stopped(self):
        calls = []

        async def probe():
            calls.append(1)
            return "Connection successful"

        monitor = HealthMonitor(probe=probe, probe_interval_s=0.01)
        monitor.start()
        self.assertTrue(monitor.monitoring)

        for _ in range(100):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)
        await monitor.stop()

        self.assertFalse(monitor.monitoring)
        self.assertGreaterEqual(len(calls), 2)
        seen = len(calls)
        await asyncio.sleep(0.05)
        self.assertEqual(len(calls), seen)

    async def test_restart_replaces_the_running_probe(self):
        async def probe():
            return "Connection successful"

        monitor = HealthMonitor(probe=probe, probe_interval_s=60)
        monitor.start()
        monitor.start()
        self.assertTrue(monitor.monitoring)

        await monitor.stop()
        await monitor.stop()
        self.assertFalse(monitor.monitoring)


if __name__ == "__main__":
    unittest.main()
