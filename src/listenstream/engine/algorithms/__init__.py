"""Algorithms used by the aggregation engine.

Pure Python / numpy reference implementations of the two non-trivial steps:
top-K partial selection (top_k) and streamgraph stacking (stack).
"""
