"""
SynthFeed - Deterministic Synthetic Price Oracle

A closed-form market simulator for timed up/down trading terminals. Produces
reproducible prices and OHLC candle history for any symbol and wall-clock time,
runs live candle feeds for chart subscribers, and settles trades by sampling the
same price function at entry and expiry.
"""

__version__ = "0.1.0"
__author__ = "SynthFeed Team"
