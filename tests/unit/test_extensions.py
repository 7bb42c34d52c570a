"""Unit tests for the admin UI registration entry points."""

from contextlib import ExitStack
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI

STEPS = [
    "add_db_contexts",
    "add_authentication_services",
    "add_authorization_policies",
    "add_exception_filters",
    "add_admin_services",
    "add_mvc_with_localization",
]


@pytest.fixture
def steps():
    """Replace the six registration steps with mocks sharing one call recorder."""
    manager = Mock()
    with ExitStack() as stack:
        for name in STEPS:
            step = stack.enter_context(patch(f"idsadmin.extensions.{name}"))
            manager.attach_mock(step, name)
        yield manager


def _options_passed(steps):
    return [call.args[1] for call in steps.mock_calls]


class TestAddAdminUIWithOptions:
    def test_steps_called_once_in_order(self, steps):
        from idsadmin.extensions import add_admin_ui_with_options

        app = FastAPI()
        result = add_admin_ui_with_options(app, lambda options: None)

        assert result is app
        assert [call[0] for call in steps.mock_calls] == STEPS
        for name in STEPS:
            getattr(steps, name).assert_called_once()

    def test_every_step_gets_the_same_options(self, steps):
        from idsadmin.extensions import add_admin_ui_with_options

        app = FastAPI()
        add_admin_ui_with_options(app, lambda options: None)

        passed = _options_passed(steps)
        assert len(passed) == 6
        assert all(options is passed[0] for options in passed)
        assert passed[0] is app.state.admin_options
        assert passed[0].app is app
        assert all(call.args[0] is app for call in steps.mock_calls)

    def test_steps_see_the_callback_mutations(self, steps):
        from idsadmin.extensions import add_admin_ui_with_options

        seen = {}

        def configure(options):
            options.testing.is_staging = True
            options.admin.administration_role = "SuperAdmin"
            options.connection_strings.identity_db = "sqlite+aiosqlite:///identity.db"

        def record(app, options, *args):
            seen["staging"] = options.testing.is_staging
            seen["role"] = options.admin.administration_role
            seen["identity_db"] = options.connection_strings.identity_db

        steps.add_db_contexts.side_effect = record
        add_admin_ui_with_options(FastAPI(), configure)

        assert seen == {
            "staging": True,
            "role": "SuperAdmin",
            "identity_db": "sqlite+aiosqlite:///identity.db",
        }

    def test_callback_runs_once_before_any_step(self, steps):
        from idsadmin.extensions import add_admin_ui_with_options

        callback = Mock(side_effect=lambda options: steps.callback(options))
        add_admin_ui_with_options(FastAPI(), callback)

        callback.assert_called_once()
        assert [call[0] for call in steps.mock_calls] == ["callback"] + STEPS

    def test_default_identity_model(self, steps):
        from idsadmin.extensions import add_admin_ui_with_options
        from idsadmin.identity.schemas import default_identity_model

        add_admin_ui_with_options(FastAPI(), lambda options: None)

        for name in ("add_db_contexts", "add_admin_services", "add_mvc_with_localization"):
            assert getattr(steps, name).call_args.args[2] is default_identity_model()

    def test_custom_identity_model(self, steps, identity_model):
        from idsadmin.extensions import add_admin_ui_with_options

        add_admin_ui_with_options(FastAPI(), lambda options: None, identity_model=identity_model)
        assert steps.add_db_contexts.call_args.args[2] is identity_model

    def test_step_errors_propagate(self, steps):
        from idsadmin.extensions import add_admin_ui_with_options

        steps.add_db_contexts.side_effect = ValueError("Missing connection string")
        with pytest.raises(ValueError, match="Missing connection string"):
            add_admin_ui_with_options(FastAPI(), lambda options: None)
        steps.add_authentication_services.assert_not_called()


class TestAddAdminUI:
    def test_environment_then_configuration(self, steps):
        from idsadmin.configuration import Configuration, HostingEnvironment
        from idsadmin.extensions import add_admin_ui

        # Configuration is applied after the hosting environment, so it wins.
        configuration = Configuration({"testing": {"is_staging": False}})
        add_admin_ui(FastAPI(), configuration, HostingEnvironment(environment_name="Staging"))

        options = steps.add_db_contexts.call_args.args[1]
        assert options.testing.is_staging is False

    def test_environment_applies_without_configuration(self, steps):
        from idsadmin.configuration import Configuration, HostingEnvironment
        from idsadmin.extensions import add_admin_ui

        add_admin_ui(FastAPI(), Configuration({}), HostingEnvironment(environment_name="Staging"))

        options = steps.add_db_contexts.call_args.args[1]
        assert options.testing.is_staging is True

    def test_migrations_package_is_the_calling_package(self, steps):
        from idsadmin.configuration import Configuration, HostingEnvironment
        from idsadmin.extensions import add_admin_ui

        # Set after the configuration, so a configured package is overridden.
        configuration = Configuration(
            {"connection_strings": {"identity_db_migrations_package": "configured"}}
        )
        add_admin_ui(FastAPI(), configuration, HostingEnvironment())

        options = steps.add_db_contexts.call_args.args[1]
        expected = __name__.split(".")[0]
        assert options.connection_strings.identity_db_migrations_package == expected
        assert options.connection_strings.admin_log_db_migrations_package == expected

    def test_logging_builder_reads_configuration(self, steps):
        from idsadmin.configuration import Configuration, HostingEnvironment
        from idsadmin.extensions import add_admin_ui

        configuration = Configuration({"logging": {"sinks": [{"sink": "stderr"}]}})
        add_admin_ui(FastAPI(), configuration, HostingEnvironment())

        options = steps.add_db_contexts.call_args.args[1]
        builder = Mock()
        options.logging_configuration_builder(builder)
        builder.read_from_configuration.assert_called_once_with(configuration)

    def test_options_are_applied_in_order(self, steps):
        from idsadmin.configuration import Configuration, HostingEnvironment
        from idsadmin.extensions import add_admin_ui
        from idsadmin.options import AdminOptions, ConnectionStrings

        recorder = Mock()
        with (
            patch.object(AdminOptions, "apply_hosting_environment", recorder.env),
            patch.object(AdminOptions, "apply_configuration", recorder.configuration),
            patch.object(ConnectionStrings, "set_migrations_package", recorder.migrations),
        ):
            add_admin_ui(FastAPI(), Configuration({}), HostingEnvironment())

        assert [call[0] for call in recorder.mock_calls] == ["env", "configuration", "migrations"]
