"""
Fetching, parsing and normalization helpers shared by the strategies.
"""
