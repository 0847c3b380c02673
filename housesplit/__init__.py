"""
HouseSplit - Source Package

Shared household expense tracking: members log expenses with per-member
splits, record settlements between each other, and see who owes whom.

DESIGN PRINCIPLES:
1. Balances are always recomputed from the full history
2. The balance engine is pure - no I/O, no hidden state
3. Bad data degrades the answer, it never crashes the computation
4. Every computation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "HouseSplit Team"
