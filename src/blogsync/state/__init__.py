"""State/reducer layer.

This package is the single source of truth for how fetch results and
local mutations are folded into deterministic, immutable stream
snapshots, and for the pure access policy used by route guards.
"""
