"""RangeScan Utils"""
from utils.logger     import get_logger, set_level, log
from utils.validators import validate_port, parse_port, validate_range_text
from utils.constants  import ScanMode, TargetState, ProbeMethod, TIMING_PROFILES
__all__ = ["get_logger", "set_level", "log", "validate_port", "parse_port",
           "validate_range_text", "ScanMode", "TargetState", "ProbeMethod",
           "TIMING_PROFILES"]
