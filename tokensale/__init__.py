"""Token Sale Ledger.

A deterministic, in-process engine for a fixed-supply token ledger and the
staged, capped fundraising sale that distributes it.
"""

__version__ = "0.1.0"
