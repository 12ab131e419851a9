import logging

import pytest
import structlog
from fakes import FakeCertificates, FakeProviderClient

from provisioning._helpers import ResourceNames
from provisioning.workflow import WorkflowContext

NAMES = ResourceNames(
    group="rgNEMV_12345",
    plan="plan-12345",
    app1="webapp1-12345",
    app2="webapp2-12345",
    domain="jsdkdemo-12345.com",
)


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration around each test."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def names():
    return NAMES


@pytest.fixture
def client():
    return FakeProviderClient()


@pytest.fixture
def certificates():
    return FakeCertificates()


@pytest.fixture
def make_ctx(certificates):
    def make(client):
        return WorkflowContext(client=client, generate_certificate=certificates)

    return make
