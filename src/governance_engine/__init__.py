"""ISO/IEC 38500 Governance Engine.

Records applications, portfolios and governance agreements, and scores
them through the Evaluate, Direct and Monitor principles.
"""

__version__ = "1.0.0"
