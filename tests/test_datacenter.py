from unittest import TestCase, mock

from kubenstest.datacenter import DatacenterWrapper, duplicate
from kubenstest.exceptions import KubectlException, StepFailedException
from kubenstest.nswrapper import WrapperConfig
from kubenstest.poller import TimedOut
from tests.test_nswrapper import FakeKubectl


class TestSuiteDatacenter(TestCase):
    def setUp(self):
        self.fake = FakeKubectl()
        patcher = mock.patch("kubenstest.kubectl.subprocess.run", new=self.fake)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.dc = DatacenterWrapper("dc suite", "cass-ns", config=WrapperConfig(log_root="/logs",
                                                                                poll_interval=0.01))

    def test_duplicate(self):
        self.assertEqual(duplicate("true", 3), "true true true")
        self.assertEqual(duplicate("true", 0), "")

    def test_no_pods(self):
        self.fake.outputs = ["[]"]
        self.assertTrue(self.dc.wait_for_datacenter_to_have_no_pods("dc1"))
        cmd = self.fake.commands[0]
        self.assertIn("--selector=cassandra.datastax.com/datacenter=dc1", cmd)
        self.assertIn("--output=jsonpath={.items}", cmd)

    def test_ready_pod_count(self):
        self.fake.outputs = ["true true"]
        self.assertTrue(self.dc.wait_for_datacenter_ready_pod_count("dc1", 2))
        self.assertIn("--field-selector=status.phase=Running", self.fake.commands[0])

    def test_ready(self):
        self.fake.outputs = ["3", "true true true", "Ready"]
        self.dc.wait_for_datacenter_ready("dc1")
        self.assertEqual(len(self.fake.commands), 3)
        self.assertIn("--output=jsonpath={.spec.size}", self.fake.commands[0])
        self.assertIn("--output=jsonpath={.status.cassandraOperatorProgress}", self.fake.commands[2])
        self.assertEqual(len(self.fake.dumps), 2)

    def test_ready_bad_size(self):
        self.fake.outputs = ["three"]
        with self.assertRaises(StepFailedException):
            self.dc.wait_for_datacenter_ready("dc1")

    def test_operator_progress_times_out(self):
        self.fake.outputs = ["Updating"]
        with self.assertRaises(StepFailedException) as ctx:
            self.dc.wait_for_datacenter_operator_progress("dc1", "Ready", 0)
        self.assertIsInstance(ctx.exception.outcome, TimedOut)

    def test_pod_names_sorted(self):
        self.fake.outputs = ["dc1-rack1-sts-2 dc1-rack1-sts-0 dc1-rack1-sts-1"]
        self.assertEqual(self.dc.get_datacenter_pod_names("dc1"),
                         ["dc1-rack1-sts-0", "dc1-rack1-sts-1", "dc1-rack1-sts-2"])

    def test_pod_names_empty(self):
        self.fake.outputs = [""]
        self.assertEqual(self.dc.get_datacenter_pod_names("dc1"), [])

    def test_disable_gossip_wait_not_ready(self):
        self.fake.outputs = ["", ""]
        self.dc.disable_gossip_wait_not_ready("dc1-rack1-sts-0")
        exec_cmd = self.fake.commands[0]
        self.assertEqual(exec_cmd[3:9], ["dc1-rack1-sts-0", "-c", "cassandra", "--", "bash", "-c"])
        self.assertEqual(exec_cmd[-1], "nodetool disablegossip")
        self.assertIn("--selector=cassandra.datastax.com/node-state=Started", self.fake.commands[1])

    def test_enable_gossip_wait_ready(self):
        self.fake.outputs = ["", "dc1-rack1-sts-0"]
        self.dc.enable_gossip_wait_ready("dc1-rack1-sts-0")
        self.assertEqual(self.fake.commands[0][-1], "nodetool enablegossip")
        self.assertIn("--field-selector=metadata.name=dc1-rack1-sts-0", self.fake.commands[1])

    def test_operator_ready(self):
        self.fake.outputs = ["true"]
        self.assertTrue(self.dc.wait_for_operator_ready())
        self.assertIn("--selector=name=cass-operator", self.fake.commands[0])

    def test_ready_size_read_error(self):
        self.fake.fail_commands = ("get",)
        with self.assertRaises(StepFailedException) as ctx:
            self.dc.wait_for_datacenter_ready("dc1")
        self.assertIsInstance(ctx.exception.error, KubectlException)
