"""
Nutrition analytics: numeric primitives, rolling snapshots and per-item
consumption models. Import the submodules directly.
"""
