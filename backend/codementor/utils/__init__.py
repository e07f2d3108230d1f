"""
Utility functions and helper modules.
"""
