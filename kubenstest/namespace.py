import json
import logging
import time
from http import HTTPStatus

from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import MaxRetryError

from kubenstest import helpers_and_globals as ns_globals
from kubenstest.exceptions import NamespaceException
from kubenstest.poller import ExactMatch, ExecutionFailed, poll

LOGGER = logging.getLogger(__name__)


def parse_error(error_body):
    try:
        json_error = json.loads(error_body)
        code = HTTPStatus(int(json_error['code']))
        return code, json_error

    except (TypeError, ValueError, KeyError) as e:
        LOGGER.error("Decoder exception loading error msg: %s;"
                     "%s", error_body, str(e))
        return HTTPStatus(500), {"message": error_body}


class Namespace(object):
    """
    Thin wrapper around the core v1 api for the one namespace a test suite runs in.
    """
    def __init__(self, name, api=None):
        self.name = name
        self.api = api if api is not None else client.CoreV1Api()

    @property
    def k8s_object(self):
        return client.V1Namespace(metadata=client.V1ObjectMeta(name=self.name))

    def _fail(self, msg, error, area="api"):
        LOGGER.error(msg)
        ns_globals.incr_error_metric(self.name, error, area=area)
        raise NamespaceException(msg)

    def create(self):
        try:
            self.api.create_namespace(self.k8s_object, _request_timeout=ns_globals.API_REQUEST_TIMEOUT)
            LOGGER.info("Namespace %s created", self.name)

        except ApiException as e:
            error_code, error_dict = parse_error(e.body)
            if error_code == HTTPStatus.CONFLICT:
                LOGGER.info("Namespace %s already exists", self.name)
                return
            self._fail("Creating namespace %s failed: %s" % (self.name, error_dict['message']),
                       error_code.name.lower())

        except MaxRetryError:
            self._fail("Maximum number of retries exceeded when creating namespace %s" % self.name,
                       "max_retries_exceeded")

    def exists(self):
        try:
            namespace = self.api.read_namespace(self.name, _request_timeout=ns_globals.API_REQUEST_TIMEOUT)
            LOGGER.debug(namespace)
            return True

        except ApiException as e:
            error_code, error_dict = parse_error(e.body)
            if error_code == HTTPStatus.NOT_FOUND:
                return False
            LOGGER.debug("Error code: %s error dict: %s", error_code, error_dict)
            self._fail("Reading namespace %s failed: %s" % (self.name, error_dict['message']),
                       error_code.name.lower())

        except MaxRetryError:
            self._fail("Maximum number of retries exceeded when reading namespace %s" % self.name,
                       "max_retries_exceeded")

    def delete(self):
        body = client.V1DeleteOptions()
        try:
            self.api.delete_namespace(self.name, body=body, _request_timeout=ns_globals.API_REQUEST_TIMEOUT)
            LOGGER.info("Namespace %s being deleted", self.name)

        except ApiException as e:
            error_code, error_dict = parse_error(e.body)
            if error_code == HTTPStatus.NOT_FOUND:
                LOGGER.info("Namespace %s already gone", self.name)
                return
            self._fail("Deleting namespace %s failed: %s" % (self.name, error_dict['message']),
                       error_code.name.lower())

        except MaxRetryError:
            self._fail("Max retries exceeded when deleting namespace %s" % self.name, "max_retries_exceeded")

    def deleted(self):
        return not self.exists()

    def wait_on_deleted(self, timeout, interval=ns_globals.DEFAULT_POLL_INTERVAL, clock=time.monotonic,
                        sleep=time.sleep):
        """
        Blocks until the namespace is gone from the api. Namespace deletion finishes asynchronously
        once every resource inside it has been removed.

        Args:
            timeout: (float) seconds to wait
            interval: (float) seconds between two reads

        Returns: None, raises NamespaceException if the namespace still exists after `timeout`

        """
        outcome = poll(lambda: "deleted" if self.deleted() else "exists", ExactMatch("deleted"), timeout,
                       interval=interval, clock=clock, sleep=sleep)
        if isinstance(outcome, ExecutionFailed):
            raise outcome.error
        if not outcome:
            self._fail("Namespace %s still exists after %ss" % (self.name, timeout), "not_deleted", area="k8s")
