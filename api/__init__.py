"""
api — FastAPI adapter hosting registered endpoints.
"""
