import logging

import requests

from kubenstest.helpers_and_globals import StatusEvent, STATUS_REQUEST_HEADERS

LOGGER = logging.getLogger(__name__)


class StatusSender(object):
    def __init__(self, namespace, status_url=None):
        self.namespace = namespace
        self.status_url = status_url
        self.errors = []

    @property
    def results(self):
        passed = len(self.errors) == 0
        error_msgs = list(self.errors)
        self.errors = []
        return passed, error_msgs

    def add_error(self, err):
        error_list = [error[0] for error in self.errors]
        try:
            idx = error_list.index(err)
            self.errors[idx] = (err, self.errors[idx][1] + 1)
        except ValueError:
            self.errors.append((err, 1))

    def send_update(self, name):
        """
        Method which will send the result of the current step to the status endpoint. If no endpoint
        is configured or it is not reachable, will log it and carry on

        Args:
            name: (str) name of the step which ran

        Returns: (Response) requests response from the action, None if nothing was sent.

        """
        passing, msgs = self.results
        event = StatusEvent(name, passing, self.namespace, msgs)
        if not self.status_url:
            LOGGER.debug("No status endpoint configured, dropping %s", event.event_data)
            return None
        try:
            return requests.post("%s/update" % self.status_url.rstrip("/"), json=event.event_data,
                                 headers=STATUS_REQUEST_HEADERS, timeout=5)
        except requests.RequestException as e:
            LOGGER.error("Status endpoint not available, continuing")
            LOGGER.debug("Exception: %s", str(e))
            return None
