"""
Machine implementations.
"""
