"""
Tool Versions Tracker

Polls upstream release sources for a fixed set of DevOps tools and
persists the latest known versions as static JSON data.
"""

__version__ = "1.0.0"
