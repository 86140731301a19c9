"""RangeScan Test Suite

Test modules:
    test_range_expander — RangeExpander parsing, ordering, size ceiling
    test_config         — timing profiles, ScanConfig, validators, RateMeter
    test_probes         — PortProbe / LabelFormatter against a local listener,
                          ReachabilityProbe with a stubbed ping process
    test_coordinator    — ScanCoordinator ordering, completeness, deadline,
                          pool bound (fake probes)
    test_dashboard      — Flask routes through the test client
    test_layering       — Static import analysis enforcing layering rules

Run all tests:
    pytest tests/ -v
"""
