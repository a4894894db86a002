class KubeNsTestException(Exception):
    pass


class KubectlException(KubeNsTestException):
    """
    A kubectl command ran but exited non-zero. Usually transient while the
    resource being observed is still coming up.
    """
    def __init__(self, args, returncode, stderr=""):
        self.cli_args = list(args)
        self.returncode = returncode
        self.stderr = stderr
        msg = "kubectl %s exited with code %s" % (" ".join(self.cli_args), returncode)
        if stderr:
            msg += ": %s" % stderr.strip()
        super().__init__(msg)


class KubectlNotFoundException(KubeNsTestException):
    pass


class InvalidExpectationException(KubeNsTestException, ValueError):
    pass


class NamespaceException(KubeNsTestException):
    pass


class StepFailedException(KubeNsTestException):
    """
    Raised by the logged steps of a wrapper when the step did not succeed.

    Attributes:
        description: the step description as announced
        outcome: the poll outcome, None for plain command steps
        error: the underlying exception, if any
    """
    def __init__(self, description, outcome=None, error=None):
        self.description = description
        self.outcome = outcome
        self.error = error
        reason = outcome if outcome is not None else error
        super().__init__("Step '%s' failed: %s" % (description, reason))
