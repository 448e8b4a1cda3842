"""
Live feed module.

Per-subscription candle feeds driven by an injected ticker: backfill on
subscribe, tick on a fixed cadence, roll candles on interval boundaries and
publish candle and price events to the subscriber.
"""
