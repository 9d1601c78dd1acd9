"""
Utility helpers (money/date formatting, bearer tokens)
"""
