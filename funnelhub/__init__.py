"""FunnelHub - multi-source campaign funnel reconciliation"""

__version__ = "0.4.0"
