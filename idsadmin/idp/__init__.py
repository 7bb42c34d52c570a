"""
OAuth/OpenID Connect server configuration store (clients, resources) and persisted grants.
"""
