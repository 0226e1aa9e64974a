"""
BridgeScout - Single-exchange bridge currency arbitrage scanner

Detects triangle and cross-pair arbitrage cycles between a local currency
and traded assets, using a bridge currency (USDT by default).
"""

__version__ = "1.0.0"
