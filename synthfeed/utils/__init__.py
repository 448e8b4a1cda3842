"""
Utility functions module.

Time Semantics:
- Prices are a pure function of (symbol, time); callers pass time explicitly
- Wall-clock time is read only by the feed driver and by the engine facade
  when a caller omits "now"
- Candle times are left-edge boundaries, integer multiples of the interval
"""
