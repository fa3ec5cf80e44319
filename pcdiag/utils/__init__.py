"""
PC Diag Utilities
"""
