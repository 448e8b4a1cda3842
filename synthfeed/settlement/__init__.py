"""
Trade settlement module.

Win/loss rule for timed up/down trades, trade tickets with frozen entry
prices, and the expiry evaluator that samples the oracle at expiry.
"""
