"""Lianjia second-hand housing crawler."""

__version__ = "0.1.0"
