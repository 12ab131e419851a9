"""
One provisioning run, from environment to exit code.

Exit codes: 0 when every resource was provisioned (and then cleaned up),
1 when settings are missing or invalid (nothing was created), 2 when a
provisioning step failed (cleanup still ran).
"""

import os
from typing import Callable, Mapping

import structlog

from config import Settings
from provisioning._helpers import ResourceNames, create_password
from provisioning.azure import AzureProviderClient
from provisioning.certificates import generate_self_signed_certificate
from provisioning.client import ProviderClient
from provisioning.errors import ConfigError
from provisioning.log import bind_run, setup_logging
from provisioning.workflow import (
    CertificateProvisioner,
    WorkflowContext,
    WorkflowResult,
    run_workflow,
)

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_PROVISIONING = 2

ClientFactory = Callable[[Settings], ProviderClient]


def azure_client(settings: Settings) -> AzureProviderClient:
    return AzureProviderClient(
        client_id=settings.client_id,
        client_secret=settings.client_secret,
        tenant_id=settings.tenant_id,
        subscription_id=settings.subscription_id,
        stack_name=settings.stack_name,
        backend_url=settings.backend_url,
        passphrase=settings.passphrase,
    )


def run(
    environ: Mapping[str, str] | None = None,
    client_factory: ClientFactory = azure_client,
    generate_certificate: CertificateProvisioner = generate_self_signed_certificate,
) -> int:
    """
    Validate settings, build the provider client and run the workflow once.

    Args:
        environ: Environment to read settings from (defaults to os.environ).
        client_factory: Builds the provider client from validated settings.
        generate_certificate: Certificate provisioner handed to the workflow.

    Returns:
        Process exit code (EXIT_OK, EXIT_CONFIG or EXIT_PROVISIONING).
    """
    environ = os.environ if environ is None else environ
    try:
        settings = Settings.from_environ(environ)
    except ConfigError as exc:
        logger.error("invalid_settings", error=str(exc))
        logger.info("cleanup_skipped", reason="no resources were created")
        return EXIT_CONFIG

    setup_logging(settings.log_format, settings.log_level, subscription_id=settings.subscription_id)
    names = ResourceNames.generate()
    bind_run(names.group)
    logger.info("selected_subscription", region=settings.region)

    try:
        ctx = WorkflowContext(
            client=client_factory(settings),
            generate_certificate=generate_certificate,
            region=settings.region,
        )
        result: WorkflowResult = run_workflow(ctx, names=names, password=create_password())
    except Exception:
        # run_workflow cleans up before letting an unexpected error out.
        logger.exception("run_crashed")
        return EXIT_PROVISIONING

    logger.info(
        "run_finished",
        phases=[phase.value for phase in result.state.history],
        cleanup=result.cleanup.value,
        error=str(result.error) if result.error else None,
    )
    return EXIT_OK if result.succeeded else EXIT_PROVISIONING
