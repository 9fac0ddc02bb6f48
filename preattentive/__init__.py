"""Pre-attentive visual search experiment with an interval staircase."""

__version__ = "0.1.0"
