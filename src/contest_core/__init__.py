"""Stock-picking contest core — quotes, valuation, leaderboards."""

__version__ = "0.1.0"
