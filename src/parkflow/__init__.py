"""parkflow - parking spot allocation and billing"""

__version__ = "1.0.0"
