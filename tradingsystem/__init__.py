"""
Systematic trading forecast core.

Builds price series, derives volatility-normalized forecasts from trading
rules, and combines correlated forecasts with a diversification multiplier.
"""
