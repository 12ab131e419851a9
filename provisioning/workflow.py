"""
Provisioning workflow: two web apps on one plan, a purchased domain, and
wildcard TLS bindings, followed by guaranteed teardown.

The run is a linear state machine:

    Init -> GroupCreated -> App1Created -> App2Created -> DomainPurchased
         -> Binding1Created -> CertificateGenerated -> Binding1Upgraded
         -> Binding2Upgraded -> Done

Each transition takes the current ``WorkflowState`` and returns a new one.
Whatever phase was last reached, the run ends with a single ``Cleanup`` phase
that deletes the resource group (and with it every resource in it). Cleanup
is skipped as a no-op when the group was never created, and cleanup failures
are logged rather than raised.
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

import structlog

from provisioning._helpers import ResourceNames, host_name
from provisioning.certificates import DEFAULT_PFX_PATH
from provisioning.client import ProviderClient
from provisioning.errors import ProvisioningError
from provisioning.log import print_resource
from provisioning.models import (
    DEFAULT_REGISTRANT,
    Certificate,
    DeleteOutcome,
    DnsRecordType,
    Domain,
    HostNameBinding,
    RegistrantContact,
    ResourceGroup,
    SiteConfig,
    SslState,
    WebApp,
)

logger = structlog.get_logger(__name__)

CertificateProvisioner = Callable[[str, str, str], Certificate]


class Phase(str, Enum):
    INIT = "Init"
    GROUP_CREATED = "GroupCreated"
    APP1_CREATED = "App1Created"
    APP2_CREATED = "App2Created"
    DOMAIN_PURCHASED = "DomainPurchased"
    BINDING1_CREATED = "Binding1Created"
    CERTIFICATE_GENERATED = "CertificateGenerated"
    BINDING1_UPGRADED = "Binding1Upgraded"
    BINDING2_UPGRADED = "Binding2Upgraded"
    DONE = "Done"
    CLEANUP = "Cleanup"


class CleanupOutcome(str, Enum):
    DELETED = "deleted"
    # No group was created, so nothing was sent to the provider.
    SKIPPED = "skipped"
    # The provider reported the group as already gone.
    NOTHING_TO_CLEAN = "nothing_to_clean"
    FAILED = "failed"


@dataclass(frozen=True)
class WorkflowContext:
    """Collaborators and fixed inputs shared by every transition."""

    client: ProviderClient
    generate_certificate: CertificateProvisioner
    region: str = "eastus"
    site_config: SiteConfig = SiteConfig()
    registrant: RegistrantContact = DEFAULT_REGISTRANT
    certificate_path: str = DEFAULT_PFX_PATH


@dataclass(frozen=True)
class WorkflowState:
    """
    Everything one run has accumulated so far.

    Attributes:
        names: Names generated up front for every resource.
        password: Certificate password, generated once per run.
        history: Phases reached, in order; the last one is the current phase.
        group, app1, app2, domain, certificate: Set by the transition that
            creates them.
        bindings: Every binding result, one per binding call.
    """

    names: ResourceNames
    password: str = field(repr=False)
    history: tuple[Phase, ...] = (Phase.INIT,)
    group: ResourceGroup | None = None
    app1: WebApp | None = None
    app2: WebApp | None = None
    domain: Domain | None = None
    certificate: Certificate | None = None
    bindings: tuple[HostNameBinding, ...] = ()

    @property
    def phase(self) -> Phase:
        return self.history[-1]

    def advance(self, phase: Phase, **changes) -> "WorkflowState":
        return dataclasses.replace(self, history=self.history + (phase,), **changes)


@dataclass(frozen=True)
class WorkflowResult:
    state: WorkflowState
    cleanup: CleanupOutcome
    error: ProvisioningError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and Phase.DONE in self.state.history


def create_group(state: WorkflowState, ctx: WorkflowContext) -> WorkflowState:
    logger.info("creating_resource_group", name=state.names.group, region=ctx.region)
    group = ctx.client.create_or_update_resource_group(state.names.group, ctx.region)
    print_resource(logger, group)
    return state.advance(Phase.GROUP_CREATED, group=group)


def create_app1(state: WorkflowState, ctx: WorkflowContext) -> WorkflowState:
    logger.info("creating_web_app", name=state.names.app1, plan=state.names.plan)
    app = ctx.client.create_or_update_web_app(
        state.group,
        state.names.app1,
        ctx.region,
        ctx.site_config,
        plan_name=state.names.plan,
    )
    logger.info("created_web_app", name=app.name, plan_id=app.plan_id)
    print_resource(logger, app)
    return state.advance(Phase.APP1_CREATED, app1=app)


def create_app2(state: WorkflowState, ctx: WorkflowContext) -> WorkflowState:
    # Both apps share the plan created with app1.
    logger.info("creating_web_app", name=state.names.app2, plan_id=state.app1.plan_id)
    app = ctx.client.create_or_update_web_app(
        state.group,
        state.names.app2,
        ctx.region,
        ctx.site_config,
        plan_id=state.app1.plan_id,
    )
    logger.info("created_web_app", name=app.name, plan_id=app.plan_id)
    print_resource(logger, app)
    return state.advance(Phase.APP2_CREATED, app2=app)


def purchase_domain(state: WorkflowState, ctx: WorkflowContext) -> WorkflowState:
    logger.info("purchasing_domain", name=state.names.domain)
    domain = ctx.client.purchase_domain(state.group, state.names.domain, ctx.registrant)
    logger.info("purchased_domain", name=domain.name)
    print_resource(logger, domain)
    return state.advance(Phase.DOMAIN_PURCHASED, domain=domain)


def _bind(
    state: WorkflowState,
    ctx: WorkflowContext,
    app: WebApp,
    ssl_state: SslState | None,
) -> HostNameBinding:
    host = host_name(app.name, state.domain.name)
    scheme = "https" if ssl_state is SslState.SNI_ENABLED else "http"
    logger.info("binding_host_name", url=f"{scheme}://{host}", app=app.name)
    binding = ctx.client.create_or_update_host_name_binding(
        app,
        host,
        state.domain,
        DnsRecordType.CNAME,
        ssl_state=ssl_state,
        certificate=state.certificate if ssl_state is SslState.SNI_ENABLED else None,
    )
    logger.info("bound_host_name", url=f"{scheme}://{host}", app=app.name)
    print_resource(logger, binding)
    return binding


def bind_app1(state: WorkflowState, ctx: WorkflowContext) -> WorkflowState:
    binding = _bind(state, ctx, state.app1, ssl_state=None)
    return state.advance(Phase.BINDING1_CREATED, bindings=state.bindings + (binding,))


def generate_certificate(state: WorkflowState, ctx: WorkflowContext) -> WorkflowState:
    logger.info("creating_certificate", path=ctx.certificate_path, domain=state.domain.name)
    certificate = ctx.generate_certificate(
        state.domain.name, ctx.certificate_path, state.password
    )
    logger.info("created_certificate", path=certificate.path)
    return state.advance(Phase.CERTIFICATE_GENERATED, certificate=certificate)


def upgrade_app1_binding(state: WorkflowState, ctx: WorkflowContext) -> WorkflowState:
    binding = _bind(state, ctx, state.app1, ssl_state=SslState.SNI_ENABLED)
    return state.advance(Phase.BINDING1_UPGRADED, bindings=state.bindings + (binding,))


def bind_app2(state: WorkflowState, ctx: WorkflowContext) -> WorkflowState:
    binding = _bind(state, ctx, state.app2, ssl_state=SslState.SNI_ENABLED)
    return state.advance(Phase.BINDING2_UPGRADED, bindings=state.bindings + (binding,))


Transition = Callable[[WorkflowState, WorkflowContext], WorkflowState]

TRANSITIONS: list[Transition] = [
    create_group,
    create_app1,
    create_app2,
    purchase_domain,
    bind_app1,
    generate_certificate,
    upgrade_app1_binding,
    bind_app2,
]


def cleanup_resource_group(
    client: ProviderClient,
    group: ResourceGroup | None,
) -> CleanupOutcome:
    """
    Delete group, never raising.

    Returns SKIPPED without calling the provider when group is None.
    """
    if group is None:
        logger.info("cleanup_skipped", reason="no resources were created")
        return CleanupOutcome.SKIPPED

    logger.info("deleting_resource_group", name=group.name)
    try:
        outcome = client.delete_resource_group(group)
    except Exception:
        logger.exception("cleanup_failed", name=group.name)
        return CleanupOutcome.FAILED

    if outcome is DeleteOutcome.NOT_FOUND:
        logger.info("cleanup_nothing_to_clean", name=group.name)
        return CleanupOutcome.NOTHING_TO_CLEAN
    logger.info("deleted_resource_group", name=group.name)
    return CleanupOutcome.DELETED


def run_workflow(
    ctx: WorkflowContext,
    names: ResourceNames,
    password: str,
    transitions: list[Transition] = TRANSITIONS,
) -> WorkflowResult:
    """
    Run every transition in order, then clean up exactly once.

    A ProvisioningError stops the sequence and is returned on the result.
    Any other exception propagates after cleanup has run.
    """
    state = WorkflowState(names=names, password=password)
    error: ProvisioningError | None = None
    try:
        for transition in transitions:
            state = transition(state, ctx)
        state = state.advance(Phase.DONE)
    except ProvisioningError as exc:
        error = exc
        logger.error("provisioning_failed", phase=state.phase.value, error=str(exc))
    finally:
        cleanup = cleanup_resource_group(ctx.client, state.group)
        state = state.advance(Phase.CLEANUP)
    return WorkflowResult(state=state, cleanup=cleanup, error=error)
