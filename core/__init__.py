"""
core — environment lifecycle, persistence contract, request context and errors.
"""
