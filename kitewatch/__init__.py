"""
kitewatch - Buildkite build monitor with state-change notifications.
"""

__version__ = "0.1.0"
