"""
Unit tests for request-scoped logging context.
"""

import pytest

from shared.logging import (
    add_component,
    add_operation_context,
    add_request_context,
    bind_operation,
    clear_context,
    entity_type_var,
    operation_class_var,
    operation_var,
    set_request_id,
    set_user_context,
)
from shared.errors import NotAuthorizedError
from shared.test_helpers import TEST_JWT_SECRET
from service_portfolio.app.auth import AccessPolicyGate, AuthConfig, Identity, Operation, TokenIssuer, TokenValidator


@pytest.fixture(autouse=True)
def reset_context():
    """Start and finish every test with no bound context."""
    clear_context()
    yield
    clear_context()


class TestProcessors:
    """Test cases for the structlog processors."""

    def test_operation_fields_added(self):
        bind_operation("update", entity_type="Project", operation_class="authenticated")

        event = add_operation_context(None, "info", {"event": "Entity updated"})

        assert event["entity_type"] == "Project"
        assert event["operation"] == "update"
        assert event["operation_class"] == "authenticated"

    def test_explicit_fields_win(self):
        bind_operation("list", entity_type="Skill", operation_class="public")

        event = add_operation_context(None, "info", {"event": "Cache hit", "entity_type": "PortfolioUser"})

        assert event["entity_type"] == "PortfolioUser"

    def test_nothing_bound(self):
        assert add_operation_context(None, "info", {"event": "startup"}) == {"event": "startup"}

    def test_request_fields(self):
        request_id = set_request_id()
        set_user_context("u1")

        event = add_request_context(None, "info", {"event": "x"})

        assert event["request_id"] == request_id
        assert event["user_id"] == "u1"

    def test_component_from_logger_name(self):
        event = add_component(None, "info", {"event": "x", "logger": "portfolio.read_cache"})

        assert event["service"] == "portfolio"
        assert event["component"] == "read_cache"

    def test_clear_context(self):
        set_request_id("req-1")
        bind_operation("delete", entity_type="Skill", operation_class="admin_only")

        clear_context()

        assert add_operation_context(None, "info", {}) == {}
        assert add_request_context(None, "info", {}) == {}


class TestGateBindsOperation:
    """The access gate records which operation a request is serving."""

    @pytest.fixture
    def auth_config(self):
        """Config signing with the shared test secret."""
        return AuthConfig(signing_secret=TEST_JWT_SECRET)

    @pytest.fixture
    def gate(self, auth_config):
        """Gate without metrics."""
        return AccessPolicyGate(TokenValidator(auth_config))

    def test_bound_on_allow(self, gate, auth_config):
        header = "Bearer " + TokenIssuer(auth_config).issue(Identity.of("u1", "a@x.com", ["Admin"]))

        gate.authorize_operation(Operation.DELETE, header, entity_type="Project")

        assert entity_type_var.get() == "Project"
        assert operation_var.get() == "delete"
        assert operation_class_var.get() == "admin_only"

    def test_bound_on_deny(self, gate):
        with pytest.raises(NotAuthorizedError):
            gate.authorize_operation(Operation.CREATE, None, entity_type="Skill")

        assert operation_var.get() == "create"
        assert operation_class_var.get() == "authenticated"
