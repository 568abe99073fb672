"""Search index and command-line tools for the Apps in Toss developer documentation."""

__version__ = "0.1.0"
