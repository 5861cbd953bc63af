"""Goal-driven automation of a legacy web portal through a plan / execute / review loop."""

__version__ = "0.1.0"
