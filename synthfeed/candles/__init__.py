"""
Candle synthesis module.

Generates OHLC history with a regime/trend state machine over the seeded
random source, extends it candle by candle, and animates the running candle
between boundaries.
"""
