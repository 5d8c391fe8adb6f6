"""
Smart Ledger - Source Package

A personal finance ledger that records income and expenses locally,
summarizes them into charts, and asks Gemini for categories and
spending advice.

DESIGN PRINCIPLES:
1. Every mutation is written through to storage before it completes
2. Derived numbers are recomputed, never stored
3. The language model is best-effort - a failed call yields a fallback, never an error
4. The newest ledger change always wins
"""

__version__ = "1.0.0"
__author__ = "Smart Ledger Team"
