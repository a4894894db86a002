import datetime
import logging
import os
import re

import kubernetes
from kubernetes.config import ConfigException
from statsd import StatsClient

from kubenstest import __version__
from kubenstest.exceptions import KubeNsTestException


LOGGER = logging.getLogger(__name__)

STATSD_PREFIX = 'kubenstest'
STATSD_HOST = os.environ.get("STATSD_HOST", "localhost")
STATSD_PORT = int(os.environ.get("STATSD_PORT", "8125"))
STATSD_CLIENT = StatsClient(host=STATSD_HOST, port=STATSD_PORT, prefix=STATSD_PREFIX)

STEP_METRIC_NAME = "step.%(namespace)s.%(step)s"
ERROR_METRIC_NAME = "error.%(namespace)s.%(area)s.%(error)s"

USER_AGENT = "kubenstest/" + __version__
STATUS_REQUEST_HEADERS = {'User-Agent': USER_AGENT}

# environment variables
ENV_NO_CLEANUP = "M_NO_CLEANUP"
ENV_LOG_ROOT = "KUBENSTEST_LOG_ROOT"
ENV_POLL_INTERVAL = "KUBENSTEST_POLL_INTERVAL"
ENV_STATUS_URL = "KUBENSTEST_STATUS_URL"
ENV_KUBECTL = "KUBECTL_BINARY"

KUBECTL_BINARY = os.environ.get(ENV_KUBECTL, "kubectl")

# where step log dumps go, one directory per suite run
DEFAULT_LOG_ROOT = os.path.join("..", "..", "build", "kubectl_dump")
LOG_DIR_TIME_FORMAT = "%Y.%m.%d_%H:%M:%S"
STATUS_TIME_FORMAT = '%Y-%m-%d %H:%M:%S'

# seconds between two observations of the same command
DEFAULT_POLL_INTERVAL = 1.0

# timeout for a single kubernetes api call
API_REQUEST_TIMEOUT = 60

# operator under test
DATACENTER_KIND = "cassandradatacenter"
DATACENTER_LABEL = "cassandra.datastax.com/datacenter"
NODE_STATE_STARTED_LABEL = "cassandra.datastax.com/node-state=Started"
OPERATOR_LABEL = "name=cass-operator"
CASSANDRA_CONTAINER = "cassandra"

_LOG_DIR_UNSAFE = re.compile(r"[\s\\/\-.,]")
_METRIC_UNSAFE = re.compile(r"\W")


def sanitize_for_log_dirs(text):
    return _LOG_DIR_UNSAFE.sub("_", text)


def sanitize_for_metrics(text):
    return _METRIC_UNSAFE.sub("_", text).lower()


def suite_log_dir(suite_name, log_root=DEFAULT_LOG_ROOT, now=None):
    """
    Builds the directory all step dumps of one suite run are written under.

    Args:
        suite_name: (str) name of the test suite, sanitized before use
        log_root: (str) base directory for every suite
        now: (datetime) run start time, defaults to the current time

    Returns: (str) <log_root>/<suite>/<run start time>

    """
    if now is None:
        now = datetime.datetime.now()
    return os.path.join(log_root, sanitize_for_log_dirs(suite_name), now.strftime(LOG_DIR_TIME_FORMAT))


def env_flag(name, environ=None):
    if environ is None:
        environ = os.environ
    return environ.get(name, "").lower() == "true"


def determine_log_level(environ=None):
    if environ is None:
        environ = os.environ
    level_name = environ.get("LOG_LEVEL", "INFO")
    level = getattr(logging, level_name.upper(), None)
    if not isinstance(level, int):
        LOGGER.warning("Unknown log level %s. Set to default INFO", level_name.upper())
        return logging.INFO
    return level


def incr_error_metric(namespace, error, area="kubectl"):
    """
    Increments the statsd error counter for a namespace.

    Args:
        namespace: namespace the failing step ran in
        error: short name of what happened, eg. timed_out or not_found
        area: which part of the run failed - one of:
            - kubectl (default)
            - timeout
            - api
            - k8s

    Returns: None, increments the statsd error metric
    """
    STATSD_CLIENT.incr(ERROR_METRIC_NAME % {"namespace": sanitize_for_metrics(namespace),
                                            "area": area,
                                            "error": error})


class StatusEvent(object):
    def __init__(self, name, passing, namespace, info=None, time=None):
        self.name = name
        self.passing = passing
        self.info = info
        self.namespace = namespace
        if not time:
            self.time = datetime.datetime.now()
        else:
            self.time = datetime.datetime.strptime(time, STATUS_TIME_FORMAT)

    @property
    def event_data(self):
        data = {"name": self.name,
                "passing": self.passing,
                "namespace": self.namespace,
                "info": self.info,
                "time": self.time.strftime(STATUS_TIME_FORMAT)}
        return data


def load_kubernetes():
    incluster = False
    try:
        kubernetes.config.load_kube_config()
    except (FileNotFoundError, ConfigException) as err:
        LOGGER.debug("Not able to use Kubeconfig: %s", err)
        try:
            kubernetes.config.load_incluster_config()
            incluster = True
        except (FileNotFoundError, ConfigException) as err:
            LOGGER.error("Not able to use in-cluster config: %s", err)
            raise KubeNsTestException("No kubernetes configuration found") from err
    return incluster
