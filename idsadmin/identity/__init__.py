"""
Identity administration: users, roles, claims and external logins.
"""
