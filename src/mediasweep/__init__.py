"""
mediasweep - find redundant and near-duplicate media files and trash them safely.

Duplicate detection itself is delegated to the czkawka command line scanner;
this package launches it, tracks it so a scan can be cancelled mid-flight,
normalizes its JSON output and computes summary metrics.
"""

__version__ = "0.1.0"
