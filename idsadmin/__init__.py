"""
Identity/OAuth administration UI for FastAPI hosts.

The package registers everything the admin UI needs into a host application:
storage contexts, authentication, authorization policies, exception handlers,
admin services and the localized admin routes. Start with
``idsadmin.extensions.add_admin_ui``.
"""
