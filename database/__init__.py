"""
database — SQLAlchemy-backed ModelHelper, transient store and Environment.
"""
