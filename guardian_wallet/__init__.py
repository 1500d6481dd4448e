"""
Guardian Wallet - Source Package

A custodial account controller: one owner spends from a pooled balance,
delegates bounded allowances, and a set of guardians can replace the owner
by quorum vote.

DESIGN PRINCIPLES:
1. No single guardian (nor the owner) can seize control alone
2. Every request is all-or-nothing
3. Funds move only after authorization is committed
4. Every state change is auditable
5. Storage and transfer rails are swappable
"""

__version__ = "1.0.0"
__author__ = "Guardian Wallet Team"
