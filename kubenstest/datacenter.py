import logging

from kubenstest import kubectl
from kubenstest import helpers_and_globals as ns_globals
from kubenstest.exceptions import KubeNsTestException, StepFailedException
from kubenstest.nswrapper import NsWrapper

LOGGER = logging.getLogger(__name__)

POD_NAMES_JSONPATH = "jsonpath={.items[*].metadata.name}"


def duplicate(value, count):
    return " ".join([value] * count)


class DatacenterWrapper(NsWrapper):
    """
    Namespace wrapper with the steps needed to drive a cassandra datacenter managed by the operator.
    """

    def _datacenter_label(self, dc_name):
        return "%s=%s" % (ns_globals.DATACENTER_LABEL, dc_name)

    def wait_for_datacenter_to_have_no_pods(self, dc_name):
        step = "checking that no dc pods remain"
        k = kubectl.get("pods").with_label(self._datacenter_label(dc_name)).format_output("jsonpath={.items}")
        return self.wait_for_output_and_log(step, k, "[]", 300)

    def wait_for_datacenter_operator_progress(self, dc_name, progress_value, timeout):
        step = "checking the cassandra operator progress status is set to %s" % progress_value
        k = kubectl.get(ns_globals.DATACENTER_KIND, dc_name).format_output(
            "jsonpath={.status.cassandraOperatorProgress}")
        return self.wait_for_output_and_log(step, k, progress_value, timeout)

    def wait_for_datacenter_ready_pod_count(self, dc_name, count):
        timeout = count * 400
        step = "waiting for the node to become ready"
        k = kubectl.get("pods") \
            .with_label(self._datacenter_label(dc_name)) \
            .with_flag("field-selector", "status.phase=Running") \
            .format_output("jsonpath={.items[*].status.containerStatuses[0].ready}")
        return self.wait_for_output_and_log(step, k, duplicate("true", count), timeout)

    def wait_for_datacenter_ready(self, dc_name):
        k = kubectl.get(ns_globals.DATACENTER_KIND, dc_name).format_output("jsonpath={.spec.size}")
        try:
            size = int(self.output(k))
        except (KubeNsTestException, ValueError) as e:
            raise StepFailedException("reading the size of datacenter %s" % dc_name, error=e) from e

        self.wait_for_datacenter_ready_pod_count(dc_name, size)
        self.wait_for_datacenter_operator_progress(dc_name, "Ready", 30)

    def wait_for_pod_not_started(self, pod_name):
        step = "verify that the pod is no longer marked as started"
        k = kubectl.get("pod") \
            .with_flag("field-selector", "metadata.name=" + pod_name) \
            .with_label(ns_globals.NODE_STATE_STARTED_LABEL)
        return self.wait_for_output_and_log(step, k, "", 60)

    def wait_for_pod_started(self, pod_name):
        step = "verify that the pod is marked as started"
        k = kubectl.get("pod") \
            .with_flag("field-selector", "metadata.name=" + pod_name) \
            .with_label(ns_globals.NODE_STATE_STARTED_LABEL) \
            .format_output(POD_NAMES_JSONPATH)
        return self.wait_for_output_and_log(step, k, pod_name, 60)

    def _nodetool(self, pod_name, command):
        k = kubectl.exec_on_pod(pod_name, "-c", ns_globals.CASSANDRA_CONTAINER,
                                "--", "bash", "-c", "nodetool %s" % command)
        self.exec_v(k)

    def disable_gossip(self, pod_name):
        self._nodetool(pod_name, "disablegossip")

    def enable_gossip(self, pod_name):
        self._nodetool(pod_name, "enablegossip")

    def disable_gossip_wait_not_ready(self, pod_name):
        self.disable_gossip(pod_name)
        self.wait_for_pod_not_started(pod_name)

    def enable_gossip_wait_ready(self, pod_name):
        self.enable_gossip(pod_name)
        self.wait_for_pod_started(pod_name)

    def get_datacenter_pod_names(self, dc_name):
        k = kubectl.get("pods").with_label(self._datacenter_label(dc_name)).format_output(POD_NAMES_JSONPATH)
        output = self.output(k)
        return sorted(output.split())

    def wait_for_operator_ready(self):
        step = "waiting for the operator to become ready"
        k = kubectl.get("pods") \
            .with_label(ns_globals.OPERATOR_LABEL) \
            .with_flag("field-selector", "status.phase=Running") \
            .format_output("jsonpath={.items[0].status.containerStatuses[0].ready}")
        return self.wait_for_output_and_log(step, k, "true", 120)
