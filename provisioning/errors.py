"""
Error taxonomy.

ConfigError is a precondition failure and is raised before any resource
exists. Everything under ProvisioningError can happen once the run has
started and is always followed by resource group cleanup.
"""


class ConfigError(Exception):
    """Missing or invalid settings; the run ends before any provider call."""


class ProvisioningError(Exception):
    """A provisioning step failed; the workflow aborts and cleans up."""


class ProviderError(ProvisioningError):
    """The cloud provider rejected or failed an operation."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


class CertificateError(ProvisioningError):
    """The certificate file could not be produced."""
