from unittest import TestCase

from kubenstest.exceptions import InvalidExpectationException, KubectlNotFoundException
from kubenstest.poller import ExactMatch, ExecutionFailed, PatternMatch, Satisfied, SubstringMatch, TimedOut, poll
from tests.fakes import FakeClock, ScriptedAction, kubectl_error


class TestSuiteExpectations(TestCase):
    def test_exact_match(self):
        self.assertTrue(ExactMatch("Ready").matches("Ready"))
        self.assertFalse(ExactMatch("Ready").matches("Ready "))
        self.assertFalse(ExactMatch("Ready").matches("NotReady"))

    def test_exact_match_empty_only_matches_empty(self):
        self.assertTrue(ExactMatch("").matches(""))
        self.assertFalse(ExactMatch("").matches(" "))
        self.assertFalse(ExactMatch("").matches("pod-1"))

    def test_substring_match(self):
        self.assertTrue(SubstringMatch("Ready").matches("NotReady yet"))
        self.assertTrue(SubstringMatch("Ready").matches("Ready"))
        self.assertFalse(SubstringMatch("Ready").matches("Pending"))

    def test_pattern_match_searches(self):
        self.assertTrue(PatternMatch(r"true( true){2}").matches("true true true"))
        self.assertTrue(PatternMatch(r"dc1-rack\d").matches("pods: dc1-rack1-sts-0"))
        self.assertFalse(PatternMatch(r"^Ready$").matches("NotReady"))

    def test_malformed_pattern_is_config_error(self):
        with self.assertRaises(InvalidExpectationException):
            PatternMatch("[unclosed")

    def test_malformed_pattern_is_value_error(self):
        with self.assertRaises(ValueError):
            PatternMatch("(")


class TestSuitePoll(TestCase):
    def setUp(self):
        self.clock = FakeClock()

    def _poll(self, action, expectation, timeout):
        return poll(action, expectation, timeout, interval=1, clock=self.clock, sleep=self.clock.sleep)

    def test_satisfied_immediately(self):
        action = ScriptedAction("Ready")
        outcome = self._poll(action, ExactMatch("Ready"), 30)
        self.assertIsInstance(outcome, Satisfied)
        self.assertTrue(outcome)
        self.assertEqual(action.calls, 1)
        self.assertEqual(self.clock.sleeps, [])
        self.assertEqual(outcome.last_output, "Ready")

    def test_times_out_when_never_satisfied(self):
        action = ScriptedAction("Pending")
        outcome = self._poll(action, ExactMatch("Ready"), 2)
        self.assertIsInstance(outcome, TimedOut)
        self.assertFalse(outcome)
        self.assertEqual(outcome.last_output, "Pending")
        self.assertGreaterEqual(self.clock.now, 2)
        self.assertLessEqual(self.clock.now, 3)
        self.assertIn("Pending", str(outcome))

    def test_zero_timeout_checks_once(self):
        action = ScriptedAction("Pending")
        outcome = self._poll(action, ExactMatch("Ready"), 0)
        self.assertIsInstance(outcome, TimedOut)
        self.assertEqual(action.calls, 1)
        self.assertEqual(self.clock.sleeps, [])

    def test_zero_timeout_can_still_be_satisfied(self):
        outcome = self._poll(ScriptedAction("Ready"), ExactMatch("Ready"), 0)
        self.assertIsInstance(outcome, Satisfied)

    def test_negative_timeout_rejected(self):
        with self.assertRaises(ValueError):
            self._poll(ScriptedAction("Ready"), ExactMatch("Ready"), -1)

    def test_satisfied_after_a_few_attempts(self):
        action = ScriptedAction("Pending", "Pending", "Ready")
        outcome = self._poll(action, ExactMatch("Ready"), 30)
        self.assertIsInstance(outcome, Satisfied)
        self.assertEqual(action.calls, 3)
        self.assertEqual(outcome.attempts, 3)
        self.assertEqual(self.clock.sleeps, [1, 1])

    def test_transient_errors_then_success_is_satisfied(self):
        action = ScriptedAction(kubectl_error(), kubectl_error(), "Ready")
        outcome = self._poll(action, ExactMatch("Ready"), 30)
        self.assertIsInstance(outcome, Satisfied)

    def test_persistent_errors_time_out(self):
        error = kubectl_error("NotFound")
        outcome = self._poll(ScriptedAction(error), ExactMatch("Ready"), 3)
        self.assertIsInstance(outcome, TimedOut)
        self.assertIs(outcome.last_error, error)
        self.assertIsNone(outcome.last_output)
        self.assertIn("NotFound", str(outcome))

    def test_missing_binary_fails_execution(self):
        error = KubectlNotFoundException("kubectl not found")
        action = ScriptedAction(error)
        outcome = self._poll(action, ExactMatch("Ready"), 30)
        self.assertIsInstance(outcome, ExecutionFailed)
        self.assertIs(outcome.error, error)
        self.assertEqual(action.calls, 1)

    def test_substring_poll(self):
        outcome = self._poll(ScriptedAction("", "pod-0 Running"), SubstringMatch("Running"), 10)
        self.assertIsInstance(outcome, Satisfied)

    def test_empty_output_poll(self):
        action = ScriptedAction("pod-0", "pod-0", "")
        outcome = self._poll(action, ExactMatch(""), 10)
        self.assertIsInstance(outcome, Satisfied)
        self.assertEqual(action.calls, 3)
