"""
RangeScan Core — Public API

from core import ScanCoordinator, ScanConfig, RangeExpander
"""
from core.errors        import (ScanError, ScanRequestError, InvalidRangeFormat,
                                RangeTooLarge, InvalidPort, ProbeError, ProbeTimeout,
                                ProbeNetworkError, InternalSchedulingError)
from core.timing        import get_timing, RateMeter
from core.config        import ScanConfig
from core.range_expander import RangeExpander, expand_range
from core.results       import (ScanTarget, PortResult, ReachabilityResult,
                                ResultSet, ScanStats)
from core.port_probe    import PortProbe, LabelFormatter, ServiceDB
from core.reachability  import ReachabilityProbe
from core.coordinator   import ScanCoordinator

__all__ = [
    "ScanCoordinator", "ScanConfig",
    "RangeExpander", "expand_range",
    "PortProbe", "LabelFormatter", "ServiceDB",
    "ReachabilityProbe",
    "ScanTarget", "PortResult", "ReachabilityResult", "ResultSet", "ScanStats",
    "get_timing", "RateMeter",
    "ScanError", "ScanRequestError", "InvalidRangeFormat", "RangeTooLarge",
    "InvalidPort", "ProbeError", "ProbeTimeout", "ProbeNetworkError",
    "InternalSchedulingError",
]
