from argparse import ArgumentParser
import logging
import sys

from kubenstest.exceptions import KubeNsTestException
from kubenstest.helpers_and_globals import determine_log_level, load_kubernetes
from kubenstest.nswrapper import NsWrapper, WrapperConfig


LOGGER = logging.getLogger(__name__)


def main(argv=None):
    logging.basicConfig(level=determine_log_level())
    parser = ArgumentParser("Delete the namespace a kubernetes end to end suite ran in.")
    parser.add_argument("suite", type=str, help="Name of the test suite")
    parser.add_argument("namespace", type=str, help="Namespace to tear down")
    args = parser.parse_args(argv)
    try:
        load_kubernetes()
        wrapper = NsWrapper(args.suite, args.namespace, config=WrapperConfig.from_environment())
        wrapper.terminate()
    except KubeNsTestException as e:
        LOGGER.error("Cleanup of %s failed: %s", args.namespace, e)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
