"""
Daybook - Source Package

A small personal dashboard: a clock pinned to one timezone, an
AI-written weather card with a generated illustration, and a pocket
expense ledger with AI commentary.

DESIGN PRINCIPLES:
1. The view must stay usable when the AI service is down
2. The ledger is the only persisted state
3. Every background task is owned and cancelled by someone
4. Storage is injected, never global
"""

__version__ = "1.0.0"
__author__ = "Daybook Team"
