"""
Series Sentinel: anomaly alerts for business time series.

Two alert families are available for every series key:
- Z-Score with adaptive thresholds and triple validation
- Approximate ARIMA with a one-step prediction interval
"""

__version__ = "0.1.0"
