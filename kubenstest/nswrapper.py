import logging
import os
import threading

from kubenstest import kubectl
from kubenstest import helpers_and_globals as ns_globals
from kubenstest.exceptions import KubeNsTestException, StepFailedException
from kubenstest.helpers_and_globals import STATSD_CLIENT, STEP_METRIC_NAME
from kubenstest.namespace import Namespace
from kubenstest.poller import TimedOut
from kubenstest.statussender import StatusSender

LOGGER = logging.getLogger(__name__)


class WrapperConfig(object):
    """
    Runtime choices for a wrapper.

    Attributes:
        no_cleanup: keep the namespace around after the suite, for debugging failed runs
        log_root: base directory for step log dumps
        poll_interval: seconds between two observations while waiting on output
        status_url: base url of a status endpoint steps are reported to, None to disable
    """
    def __init__(self, no_cleanup=False, log_root=ns_globals.DEFAULT_LOG_ROOT,
                 poll_interval=ns_globals.DEFAULT_POLL_INTERVAL, status_url=None):
        if poll_interval < 0:
            raise ValueError("poll interval must not be negative, got %s" % poll_interval)
        self.no_cleanup = no_cleanup
        self.log_root = log_root
        self.poll_interval = poll_interval
        self.status_url = status_url

    @classmethod
    def from_environment(cls, environ=None):
        if environ is None:
            environ = os.environ
        return cls(no_cleanup=ns_globals.env_flag(ns_globals.ENV_NO_CLEANUP, environ),
                   log_root=environ.get(ns_globals.ENV_LOG_ROOT, ns_globals.DEFAULT_LOG_ROOT),
                   poll_interval=float(environ.get(ns_globals.ENV_POLL_INTERVAL,
                                                   ns_globals.DEFAULT_POLL_INTERVAL)),
                   status_url=environ.get(ns_globals.ENV_STATUS_URL) or None)


class NsWrapper(object):
    """
    Runs kubectl commands inside one namespace. The `*_and_log` methods are test steps: they are
    announced, timed, reported and always followed by a dump of the namespace's logs into a numbered
    directory, whether the step passed or not.
    """
    def __init__(self, suite_name, namespace, config=None, namespace_api=None):
        self.namespace = namespace
        self.test_suite_name = suite_name
        self.config = config if config is not None else WrapperConfig()
        self.log_dir = ns_globals.suite_log_dir(suite_name, self.config.log_root)
        self.status = StatusSender(namespace, self.config.status_url)
        self._namespace_api = namespace_api
        self._step_counter = 1
        self._step_lock = threading.Lock()

    @property
    def namespace_obj(self):
        return Namespace(self.namespace, api=self._namespace_api)

    def exec_v(self, kcmd):
        kcmd.in_namespace(self.namespace).exec_v()

    def output(self, kcmd):
        return kcmd.in_namespace(self.namespace).output()

    def wait_for_output(self, kcmd, expected, seconds):
        return kubectl.wait_for_output(kcmd.in_namespace(self.namespace), expected, seconds,
                                       interval=self.config.poll_interval)

    def wait_for_output_contains(self, kcmd, expected, seconds):
        return kubectl.wait_for_output_contains(kcmd.in_namespace(self.namespace), expected, seconds,
                                                interval=self.config.poll_interval)

    def wait_for_output_pattern(self, kcmd, pattern, seconds):
        return kubectl.wait_for_output_pattern(kcmd.in_namespace(self.namespace), pattern, seconds,
                                               interval=self.config.poll_interval)

    def count_step(self):
        with self._step_lock:
            n = self._step_counter
            self._step_counter += 1
        return n

    def gen_test_log_dir(self, description):
        sanitized = ns_globals.sanitize_for_log_dirs(description)
        return os.path.join(self.log_dir, "%02d_%s" % (self.count_step(), sanitized))

    def create_namespace(self):
        self.namespace_obj.create()

    def terminate(self):
        if self.config.no_cleanup:
            LOGGER.info("Skipping namespace cleanup and deletion.")
            return

        LOGGER.info("Cleaning up and deleting namespace %s.", self.namespace)
        # namespace deletion hangs while a datacenter is still in it
        try:
            self.exec_v(kubectl.delete(ns_globals.DATACENTER_KIND, "--all"))
        except KubeNsTestException as e:
            LOGGER.warning("Could not delete datacenters in %s: %s", self.namespace, e)
        self.namespace_obj.delete()

    def _run_step(self, description, step):
        LOGGER.info("STEP: %s", description)
        log_dir = self.gen_test_log_dir(description)
        metric = STEP_METRIC_NAME % {"namespace": ns_globals.sanitize_for_metrics(self.namespace),
                                     "step": ns_globals.sanitize_for_metrics(description)}
        try:
            with STATSD_CLIENT.timer(metric):
                result = step()
        except StepFailedException as e:
            area = "timeout" if isinstance(e.outcome, TimedOut) else "kubectl"
            ns_globals.incr_error_metric(self.namespace, "step_failed", area=area)
            self.status.add_error(str(e))
            self._dump_logs(description, log_dir, step_failed=True)
            raise
        except Exception as e:
            self.status.add_error(str(e))
            self._dump_logs(description, log_dir, step_failed=True)
            raise
        self._dump_logs(description, log_dir)
        return result

    def _dump_logs(self, description, log_dir, step_failed=False):
        try:
            kubectl.dump_logs(log_dir, self.namespace).exec_v()
        except KubeNsTestException as e:
            LOGGER.error("Dumping logs to %s failed: %s", log_dir, e)
            self.status.add_error("log dump failed: %s" % e)
            if not step_failed:
                self.status.send_update(description)
                raise StepFailedException(description, error=e) from e
        self.status.send_update(description)

    def _exec_step(self, description, func, kcmd):
        try:
            return func(kcmd)
        except KubeNsTestException as e:
            raise StepFailedException(description, error=e) from e

    def _wait_step(self, description, func, kcmd, expected, seconds):
        outcome = func(kcmd, expected, seconds)
        if not outcome:
            raise StepFailedException(description, outcome=outcome, error=outcome.last_error)
        return outcome

    def exec_and_log(self, description, kcmd):
        self._run_step(description, lambda: self._exec_step(description, self.exec_v, kcmd))

    def output_and_log(self, description, kcmd):
        return self._run_step(description, lambda: self._exec_step(description, self.output, kcmd))

    def wait_for_output_and_log(self, description, kcmd, expected, seconds):
        return self._run_step(description, lambda: self._wait_step(description, self.wait_for_output,
                                                                   kcmd, expected, seconds))

    def wait_for_output_contains_and_log(self, description, kcmd, expected, seconds):
        return self._run_step(description, lambda: self._wait_step(description, self.wait_for_output_contains,
                                                                   kcmd, expected, seconds))

    def wait_for_output_pattern_and_log(self, description, kcmd, pattern, seconds):
        return self._run_step(description, lambda: self._wait_step(description, self.wait_for_output_pattern,
                                                                   kcmd, pattern, seconds))
