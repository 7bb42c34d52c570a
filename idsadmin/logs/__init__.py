"""
Admin log: log records persisted by the admin UI and their administration.
"""
