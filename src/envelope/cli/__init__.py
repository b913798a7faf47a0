"""
Command Line Interface Package

Command Structure:
- envelope: Main entry point with utility commands (version, config)
- envelope budget: overview, assign, move, rollover, set-target, autofill, income
- envelope reconcile: start, status, clear, complete, abort, unlock
"""
