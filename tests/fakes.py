from kubenstest.exceptions import KubectlException


class FakeClock(object):
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedAction(object):
    """Returns (or raises) the scripted results in order, repeating the last one forever."""
    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        result = self.results[min(self.calls, len(self.results) - 1)]
        self.calls += 1
        if isinstance(result, Exception):
            raise result
        return result


def kubectl_error(stderr="pods not found"):
    return KubectlException(["get", "pods"], 1, stderr)
