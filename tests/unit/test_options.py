"""Unit tests for the admin options object."""

from unittest.mock import Mock

import pytest
from pydantic import ValidationError


class TestApplyHostingEnvironment:
    def test_staging(self):
        from idsadmin.configuration import HostingEnvironment
        from idsadmin.options import AdminOptions

        options = AdminOptions(Mock())
        options.apply_hosting_environment(HostingEnvironment(environment_name="Staging"))
        assert options.testing.is_staging is True
        assert options.admin.show_exception_details is False

    def test_development_shows_exception_details(self):
        from idsadmin.configuration import HostingEnvironment
        from idsadmin.options import AdminOptions

        options = AdminOptions(Mock())
        options.apply_hosting_environment(HostingEnvironment(environment_name="Development"))
        assert options.testing.is_staging is False
        assert options.admin.show_exception_details is True


class TestApplyConfiguration:
    def test_present_sections_replace_values(self):
        from idsadmin.configuration import Configuration
        from idsadmin.options import AdminOptions

        options = AdminOptions(Mock())
        options.apply_configuration(
            Configuration(
                {
                    "connection_strings": {"identity_db": "sqlite+aiosqlite:///identity.db"},
                    "admin_configuration": {"client_id": "admin-ui", "page_size": 25},
                    "culture_configuration": {"cultures": ["en", "fr"]},
                    "admin_log": {"minimum_level": "error"},
                }
            )
        )
        assert options.connection_strings.identity_db == "sqlite+aiosqlite:///identity.db"
        assert options.admin.client_id == "admin-ui"
        assert options.admin.page_size == 25
        assert options.culture.cultures == ["en", "fr"]
        assert options.admin_log.minimum_level == "ERROR"

    def test_absent_keys_keep_current_values(self):
        from idsadmin.configuration import Configuration
        from idsadmin.options import AdminOptions

        options = AdminOptions(Mock())
        options.testing.is_staging = True
        options.admin.show_exception_details = True
        options.apply_configuration(Configuration({"admin_configuration": {"client_id": "x"}}))
        assert options.testing.is_staging is True
        assert options.admin.show_exception_details is True
        assert options.admin.client_id == "x"

    def test_invalid_page_size(self):
        from idsadmin.configuration import Configuration
        from idsadmin.options import AdminOptions

        options = AdminOptions(Mock())
        with pytest.raises(ValidationError):
            options.apply_configuration(Configuration({"admin_configuration": {"page_size": 0}}))

    def test_empty_cultures_rejected(self):
        from idsadmin.configuration import Configuration
        from idsadmin.options import AdminOptions

        options = AdminOptions(Mock())
        with pytest.raises(ValidationError):
            options.apply_configuration(Configuration({"culture_configuration": {"cultures": []}}))


class TestConnectionStrings:
    def test_set_migrations_package(self):
        from idsadmin.constants import (
            ADMIN_LOG_CONTEXT,
            CONFIGURATION_CONTEXT,
            IDENTITY_CONTEXT,
            PERSISTED_GRANT_CONTEXT,
        )
        from idsadmin.options import ConnectionStrings

        connection_strings = ConnectionStrings()
        connection_strings.set_migrations_package("hostapp")
        for context in (
            IDENTITY_CONTEXT,
            CONFIGURATION_CONTEXT,
            PERSISTED_GRANT_CONTEXT,
            ADMIN_LOG_CONTEXT,
        ):
            assert connection_strings.migrations_package_for(context) == "hostapp"

    def test_url_for(self):
        from idsadmin.options import ConnectionStrings

        connection_strings = ConnectionStrings(configuration_db="sqlite+aiosqlite:///cfg.db")
        assert connection_strings.url_for("configuration") == "sqlite+aiosqlite:///cfg.db"
        assert connection_strings.url_for("identity") is None
        with pytest.raises(KeyError):
            connection_strings.url_for("unknown")
