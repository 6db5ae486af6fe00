"""
Common interfaces and utilities used across the emulator.
"""
