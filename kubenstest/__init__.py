__version__ = "0.1.0"
from .poller import poll, ExactMatch, SubstringMatch, PatternMatch, Satisfied, TimedOut, ExecutionFailed
from .kubectl import KCmd
from .namespace import Namespace
from .nswrapper import NsWrapper, WrapperConfig
from .datacenter import DatacenterWrapper
