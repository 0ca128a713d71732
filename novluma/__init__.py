"""
Novluma - usage-metered content generation API.
"""

__version__ = "0.1.0"
