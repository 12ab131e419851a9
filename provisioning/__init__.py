"""
App Service provisioning with guaranteed teardown.

- **ProviderClient**: facade over the cloud management plane;
  AzureProviderClient implements it with the Pulumi Automation API.
- **generate_self_signed_certificate**: wildcard PFX for the purchased domain.
- **run_workflow**: the ordered provisioning steps, always followed by
  resource group deletion.
"""

from provisioning.azure import AzureProviderClient
from provisioning.certificates import generate_self_signed_certificate
from provisioning.client import ProviderClient
from provisioning.workflow import (
    CleanupOutcome,
    Phase,
    WorkflowContext,
    WorkflowResult,
    run_workflow,
)

__all__ = [
    "AzureProviderClient",
    "CleanupOutcome",
    "Phase",
    "ProviderClient",
    "WorkflowContext",
    "WorkflowResult",
    "generate_self_signed_certificate",
    "run_workflow",
]
