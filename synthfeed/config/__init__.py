"""
Engine configuration module.

Tuning constants for the oscillators, regimes, candle shapes and feed cadence,
plus the static symbol and timeframe tables.
"""
