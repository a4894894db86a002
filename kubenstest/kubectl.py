import json
import logging
import subprocess

from kubenstest import helpers_and_globals as ns_globals
from kubenstest.exceptions import KubectlException, KubectlNotFoundException
from kubenstest.poller import ExactMatch, PatternMatch, SubstringMatch, poll

LOGGER = logging.getLogger(__name__)


class KCmd(object):
    """
    A single kubectl invocation. Builder methods return a new command so a
    base command can be reused, eg. in several namespaces.
    """
    def __init__(self, command, args=(), flags=None, binary=None):
        self.command = command
        self.args = tuple(args)
        self.flags = dict(flags or {})
        self.binary = binary or ns_globals.KUBECTL_BINARY

    def _copy(self, **flags):
        new_flags = dict(self.flags)
        new_flags.update(flags)
        return KCmd(self.command, self.args, new_flags, self.binary)

    def with_flag(self, name, value):
        return self._copy(**{name: value})

    def in_namespace(self, namespace):
        return self.with_flag("namespace", namespace)

    def with_label(self, label):
        return self.with_flag("selector", label)

    def format_output(self, output_type):
        return self.with_flag("output", output_type)

    def to_cli_args(self):
        # flags before positional args, everything after "--" belongs to the container
        args = [self.command]
        for name, value in self.flags.items():
            args.append("--%s=%s" % (name, value))
        args.extend(self.args)
        return args

    def _run(self, capture):
        cmd = [self.binary] + self.to_cli_args()
        LOGGER.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd,
                                    stdout=subprocess.PIPE if capture else None,
                                    stderr=subprocess.PIPE,
                                    universal_newlines=True)
        except OSError as e:
            raise KubectlNotFoundException("%s could not be started: %s" % (self.binary, e)) from e

        if result.returncode != 0:
            raise KubectlException(self.to_cli_args(), result.returncode, result.stderr or "")
        return result

    def exec_v(self):
        LOGGER.info("kubectl %s", " ".join(self.to_cli_args()))
        self._run(capture=False)

    def output(self):
        return self._run(capture=True).stdout.strip()

    def __repr__(self):
        return "KCmd(%s)" % " ".join(self.to_cli_args())


def get(*args):
    return KCmd("get", args)


def delete(*args):
    return KCmd("delete", args)


def delete_by_type_and_name(kind, name):
    return KCmd("delete", (kind, name))


def delete_from_files(path):
    return KCmd("delete", ("-f", path))


def apply_files(path):
    return KCmd("apply", ("-f", path))


def create_from_files(path):
    return KCmd("create", ("-f", path))


def create_secret(name):
    return KCmd("create", ("secret", "generic", name))


def patch(kind, name, data):
    return KCmd("patch", (kind, name, "--type=merge", "-p", json.dumps(data)))


def exec_on_pod(pod_name, *args):
    return KCmd("exec", (pod_name,) + args)


def dump_logs(path, namespace):
    args = ("dump", "--namespaces", namespace, "-o", "yaml", "--output-directory", path)
    return KCmd("cluster-info", args)


def wait_for_output_pattern(kcmd, pattern, seconds, interval=ns_globals.DEFAULT_POLL_INTERVAL):
    return _wait(kcmd, PatternMatch(pattern), seconds, interval)


def wait_for_output(kcmd, expected, seconds, interval=ns_globals.DEFAULT_POLL_INTERVAL):
    return _wait(kcmd, ExactMatch(expected), seconds, interval)


def wait_for_output_contains(kcmd, expected, seconds, interval=ns_globals.DEFAULT_POLL_INTERVAL):
    return _wait(kcmd, SubstringMatch(expected), seconds, interval)


def _wait(kcmd, expectation, seconds, interval):
    LOGGER.info("Waiting up to %ss for: %s", seconds, " ".join(kcmd.to_cli_args()))
    outcome = poll(kcmd.output, expectation, seconds, interval=interval)
    if outcome:
        LOGGER.info("Got expected output after %s attempt(s)", outcome.attempts)
    else:
        LOGGER.error("%s", outcome)
    return outcome
