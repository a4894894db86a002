import logging
import re
import time

from kubenstest.exceptions import InvalidExpectationException, KubectlException, KubeNsTestException
from kubenstest.helpers_and_globals import DEFAULT_POLL_INTERVAL

LOGGER = logging.getLogger(__name__)


class ExactMatch(object):
    def __init__(self, expected):
        self.expected = expected

    def matches(self, output):
        return output == self.expected

    def __repr__(self):
        return "ExactMatch(%r)" % self.expected


class SubstringMatch(object):
    def __init__(self, expected):
        self.expected = expected

    def matches(self, output):
        return self.expected in output

    def __repr__(self):
        return "SubstringMatch(%r)" % self.expected


class PatternMatch(object):
    def __init__(self, pattern):
        try:
            self.regex = re.compile(pattern)
        except re.error as e:
            raise InvalidExpectationException("Invalid pattern %r: %s" % (pattern, e)) from e
        self.expected = pattern

    def matches(self, output):
        return self.regex.search(output) is not None

    def __repr__(self):
        return "PatternMatch(%r)" % self.expected


class PollOutcome(object):
    """
    Result of a bounded wait. Only a satisfied outcome is truthy.

    Attributes:
        expectation: the expectation that was polled for
        last_output: text returned by the last successful observation, None if none succeeded
        last_error: exception raised by the last failed observation, None if none failed
        attempts: how many times the observation ran
    """
    satisfied = False

    def __init__(self, expectation, last_output=None, last_error=None, attempts=0):
        self.expectation = expectation
        self.last_output = last_output
        self.last_error = last_error
        self.attempts = attempts

    def __bool__(self):
        return self.satisfied

    def __repr__(self):
        return "%s(%r)" % (self.__class__.__name__, self.expectation)


class Satisfied(PollOutcome):
    satisfied = True

    def __str__(self):
        return "%r satisfied by %r" % (self.expectation, self.last_output)


class TimedOut(PollOutcome):
    def __init__(self, expectation, timeout, **kwargs):
        super().__init__(expectation, **kwargs)
        self.timeout = timeout

    def __str__(self):
        msg = "Timed out after %ss waiting for %r, last output was %r" % (self.timeout, self.expectation,
                                                                         self.last_output)
        if self.last_error is not None:
            msg += "\nThe following error occurred while querying k8s: %s" % self.last_error
        return msg


class ExecutionFailed(PollOutcome):
    def __init__(self, expectation, error, **kwargs):
        super().__init__(expectation, last_error=error, **kwargs)
        self.error = error

    def __str__(self):
        return "Could not observe %r: %s" % (self.expectation, self.error)


def poll(action, expectation, timeout_seconds, interval=DEFAULT_POLL_INTERVAL, clock=time.monotonic,
         sleep=time.sleep):
    """
    Invokes `action` until its output satisfies `expectation` or `timeout_seconds` have elapsed.

    A KubectlException from the action counts as "not yet satisfied" and the poll carries on; any other
    KubeNsTestException ends the poll with ExecutionFailed. The action always runs at least once,
    even with a zero timeout.

    Args:
        action: (callable) no-argument observation returning text
        expectation: ExactMatch, SubstringMatch or PatternMatch
        timeout_seconds: (float) non-negative time budget
        interval: (float) seconds to sleep between observations
        clock: monotonic clock, seconds
        sleep: sleep function

    Returns: (PollOutcome) Satisfied, TimedOut or ExecutionFailed

    """
    if timeout_seconds < 0:
        raise ValueError("timeout must not be negative, got %s" % timeout_seconds)
    deadline = clock() + timeout_seconds
    last_output = None
    last_error = None
    attempts = 0

    while True:
        attempts += 1
        try:
            output = action()
        except KubectlException as e:
            LOGGER.debug("Observation failed, retrying: %s", e)
            last_error = e
        except KubeNsTestException as e:
            LOGGER.error("Observation could not run: %s", e)
            return ExecutionFailed(expectation, e, last_output=last_output, attempts=attempts)
        else:
            last_output = output
            if expectation.matches(output):
                return Satisfied(expectation, last_output=output, last_error=last_error, attempts=attempts)

        if clock() >= deadline:
            return TimedOut(expectation, timeout_seconds, last_output=last_output, last_error=last_error,
                            attempts=attempts)
        sleep(interval)
