"""
Azure provider client backed by the Pulumi Automation API.

Every facade call adds (or replaces) resource declarations in an inline Pulumi
program and runs ``stack.up()``, which blocks until Azure reports every
long-running operation as finished. Declarations are keyed by resource name,
so repeating a call with the same name updates the resource in place instead
of creating a second one. Deleting the resource group runs ``stack.destroy()``
and removes the stack.

Resources are declared with ``pulumi_azure_native``:

- ``resources.ResourceGroup``: parent of everything else, so destroy removes
  children before the group.
- ``web.AppServicePlan`` + ``web.WebApp``: the plan is created with the first
  app; later apps reference its id.
- ``network.Zone`` + ``domainregistration.Domain``: the domain is purchased with an
  Azure DNS zone so bindings can add CNAME records to it.
- ``web.Certificate``: the uploaded PFX, shared by every SNI binding.
- ``network.RecordSet`` + ``web.WebAppHostNameBinding``: one CNAME per host name,
  pointing at the app's default host name.

Declarations may reference each other in any order: the program resolves a
referenced key on first use, so re-declaring a resource (e.g. upgrading a
binding to SNI) never runs it before the certificate it depends on.
"""

import base64
import datetime
from pathlib import Path
from typing import Any, Callable

import pulumi
import pulumi_azure_native as azure_native
import structlog
from pulumi import automation as auto

from provisioning._helpers import relative_record_name, wildcard
from provisioning.errors import ProviderError
from provisioning.models import (
    Certificate,
    DeleteOutcome,
    DnsRecordType,
    Domain,
    HostNameBinding,
    PlanSku,
    RegistrantContact,
    ResourceGroup,
    SiteConfig,
    SslState,
    WebApp,
)

logger = structlog.get_logger(__name__)

PROJECT_NAME = "manage-webapp-domain-ssl"
CNAME_TTL = 300

# (resolver of other declarations) -> (resource, outputs to export)
Declaration = Callable[
    [dict[str, pulumi.CustomResource]],
    tuple[pulumi.CustomResource, dict[str, Any]],
]


class _Resolver(dict):
    """Declares resources on first lookup and exports their outputs."""

    def __init__(self, declarations: dict[str, Declaration]):
        super().__init__()
        self._declarations = declarations

    def __missing__(self, key: str) -> pulumi.CustomResource:
        resource, outputs = self._declarations[key](self)
        self[key] = resource
        for name, value in outputs.items():
            pulumi.export(f"{key}:{name}", value)
        return resource


class AzureProviderClient:
    """
    ProviderClient implementation for Azure App Service.

    Args:
        client_id, client_secret, tenant_id, subscription_id: Service
            principal credentials passed to the azure-native provider.
        stack_name: Pulumi stack holding this run's resources.
        backend_url: Pulumi state backend (e.g. "file://~").
        passphrase: Secrets passphrase for self-managed backends.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        tenant_id: str,
        subscription_id: str,
        stack_name: str = "dev",
        backend_url: str = "file://~",
        passphrase: str = "",
    ):
        self.subscription_id = subscription_id
        self._credentials = {
            "clientId": (client_id, False),
            "clientSecret": (client_secret, True),
            "tenantId": (tenant_id, False),
            "subscriptionId": (subscription_id, False),
        }
        self._stack_name = stack_name
        self._backend_url = backend_url
        self._passphrase = passphrase
        self._stack: auto.Stack | None = None
        self._declarations: dict[str, Declaration] = {}
        # Provider ids returned so far, mapped back to their declaration key.
        self._keys_by_id: dict[str, str] = {}
        self._group: ResourceGroup | None = None

    # ------------------------------------------------------------------
    # Stack plumbing
    # ------------------------------------------------------------------

    def _program(self) -> None:
        declared = _Resolver(self._declarations)
        for key in list(self._declarations):
            declared[key]

    def _ensure_stack(self) -> auto.Stack:
        if self._stack is None:
            try:
                self._stack = self._create_stack()
            except (auto.CommandError, OSError) as exc:
                raise ProviderError("select_stack", str(exc)) from exc
        return self._stack

    def _create_stack(self) -> auto.Stack:
        project = auto.ProjectSettings(
            name=PROJECT_NAME,
            runtime="python",
            backend=auto.ProjectBackend(url=self._backend_url),
        )
        stack = auto.create_or_select_stack(
            stack_name=self._stack_name,
            project_name=PROJECT_NAME,
            program=self._program,
            opts=auto.LocalWorkspaceOptions(
                project_settings=project,
                env_vars={"PULUMI_CONFIG_PASSPHRASE": self._passphrase},
            ),
        )
        for key, (value, secret) in self._credentials.items():
            stack.set_config(
                f"azure-native:{key}", auto.ConfigValue(value=value, secret=secret)
            )
        return stack

    def _up(self, operation: str, region: str) -> dict[str, Any]:
        stack = self._ensure_stack()
        try:
            stack.set_config("azure-native:location", auto.ConfigValue(value=region))
            result = stack.up(on_output=self._on_output)
        except (auto.CommandError, OSError) as exc:
            raise ProviderError(operation, str(exc)) from exc
        logger.debug("stack_updated", operation=operation, summary=result.summary.result)
        return {name: output.value for name, output in result.outputs.items()}

    @staticmethod
    def _on_output(line: str) -> None:
        logger.debug("pulumi", line=line.rstrip())

    def _declare(self, key: str, declaration: Declaration) -> None:
        self._declarations[key] = declaration

    def _depends_on(
        self, declared: dict[str, pulumi.CustomResource], *ids: str
    ) -> list[pulumi.CustomResource]:
        return [declared[self._keys_by_id[i]] for i in ids if i in self._keys_by_id]

    def _record(self, key: str, outputs: dict[str, Any]) -> dict[str, Any]:
        values = {
            name.split(":")[-1]: value
            for name, value in outputs.items()
            if name.rsplit(":", 1)[0] == key
        }
        self._keys_by_id[values["id"]] = key
        return values

    def _child_opts(
        self,
        declared: dict[str, pulumi.CustomResource],
        parent_key: str,
        depends_on: list[pulumi.CustomResource] | None = None,
    ) -> pulumi.ResourceOptions:
        return pulumi.ResourceOptions(parent=declared[parent_key], depends_on=depends_on or [])

    def _group_key(self, group: ResourceGroup) -> str:
        return f"group:{group.name}"

    # ------------------------------------------------------------------
    # ProviderClient
    # ------------------------------------------------------------------

    def create_or_update_resource_group(self, name: str, region: str) -> ResourceGroup:
        key = f"group:{name}"

        def declare(declared):
            rg = azure_native.resources.ResourceGroup(
                resource_name=name,
                resource_group_name=name,
                location=region,
            )
            return rg, {"id": rg.id, "name": rg.name, "location": rg.location}

        self._declare(key, declare)
        values = self._record(key, self._up("create_or_update_resource_group", region))
        self._group = ResourceGroup(id=values["id"], name=values["name"], region=values["location"])
        return self._group

    def create_or_update_web_app(
        self,
        group: ResourceGroup,
        name: str,
        region: str,
        config: SiteConfig,
        *,
        plan_id: str | None = None,
        plan_name: str | None = None,
        plan_sku: PlanSku = PlanSku(),
    ) -> WebApp:
        if plan_id is None and plan_name is None:
            raise ValueError("either plan_id or plan_name is required")
        group_key = self._group_key(group)
        plan_key = self._keys_by_id.get(plan_id) if plan_id else f"plan:{plan_name}"

        if plan_id is None:

            def declare_plan(declared):
                plan = azure_native.web.AppServicePlan(
                    resource_name=plan_name,
                    name=plan_name,
                    resource_group_name=group.name,
                    location=region,
                    sku=azure_native.web.SkuDescriptionArgs(name=plan_sku.name, tier=plan_sku.tier),
                    opts=self._child_opts(declared, group_key),
                )
                return plan, {"id": plan.id}

            self._declare(plan_key, declare_plan)

        key = f"app:{name}"

        def declare(declared):
            server_farm_id = declared[plan_key].id if plan_key in self._declarations else plan_id
            depends = [declared[plan_key]] if plan_key in self._declarations else []
            app = azure_native.web.WebApp(
                resource_name=name,
                name=name,
                resource_group_name=group.name,
                location=region,
                server_farm_id=server_farm_id,
                site_config=azure_native.web.SiteConfigArgs(
                    net_framework_version=config.net_framework_version,
                    windows_fx_version=config.windows_fx_version,
                ),
                opts=self._child_opts(declared, group_key, depends),
            )
            return app, {
                "id": app.id,
                "name": app.name,
                "location": app.location,
                "server_farm_id": app.server_farm_id,
                "default_host_name": app.default_host_name,
            }

        self._declare(key, declare)
        outputs = self._up("create_or_update_web_app", region)
        if plan_id is None:
            self._record(plan_key, outputs)
        values = self._record(key, outputs)
        return WebApp(
            id=values["id"],
            name=values["name"],
            region=values["location"],
            plan_id=values["server_farm_id"],
            default_host_name=values["default_host_name"],
        )

    def purchase_domain(
        self,
        group: ResourceGroup,
        name: str,
        registrant: RegistrantContact,
    ) -> Domain:
        group_key = self._group_key(group)
        zone_key = f"zone:{name}"
        key = f"domain:{name}"

        def declare_zone(declared):
            zone = azure_native.network.Zone(
                resource_name=f"{name}-zone",
                zone_name=name,
                resource_group_name=group.name,
                location="global",
                opts=self._child_opts(declared, group_key),
            )
            return zone, {"id": zone.id}

        contact = azure_native.domainregistration.ContactArgs(
            email=registrant.email,
            name_first=registrant.name_first,
            name_last=registrant.name_last,
            phone=registrant.phone,
            address_mailing=azure_native.domainregistration.AddressArgs(
                address1=registrant.address.address1,
                city=registrant.address.city,
                country=registrant.address.country,
                postal_code=registrant.address.postal_code,
                state=registrant.address.state,
            ),
        )
        consent = azure_native.domainregistration.DomainPurchaseConsentArgs(
            agreed_at=datetime.datetime.now(datetime.timezone.utc).isoformat(),
            agreed_by=registrant.agreed_by,
            agreement_keys=list(registrant.agreement_keys),
        )

        def declare(declared):
            domain = azure_native.domainregistration.Domain(
                resource_name=name,
                domain_name=name,
                resource_group_name=group.name,
                location="global",
                contact_registrant=contact,
                contact_admin=contact,
                contact_billing=contact,
                contact_tech=contact,
                consent=consent,
                privacy=True,
                auto_renew=False,
                dns_type="AzureDns",
                dns_zone_id=declared[zone_key].id,
                opts=self._child_opts(declared, group_key, [declared[zone_key]]),
            )
            return domain, {
                "id": domain.id,
                "name": domain.name,
                "privacy": domain.privacy,
                "auto_renew": domain.auto_renew,
            }

        self._declare(zone_key, declare_zone)
        self._declare(key, declare)
        outputs = self._up("purchase_domain", group.region)
        self._record(zone_key, outputs)
        values = self._record(key, outputs)
        return Domain(
            id=values["id"],
            name=values["name"],
            privacy=bool(values["privacy"]),
            auto_renew=bool(values["auto_renew"]),
        )

    def _declare_certificate(self, group: ResourceGroup, app: WebApp, certificate: Certificate) -> str:
        group_key = self._group_key(group)
        key = f"certificate:{certificate.domain_name}"
        try:
            pfx_blob = base64.b64encode(Path(certificate.path).read_bytes()).decode()
        except OSError as exc:
            raise ProviderError("upload_certificate", str(exc)) from exc

        def declare(declared):
            cert = azure_native.web.Certificate(
                resource_name=f"{certificate.domain_name}-wildcard",
                name=f"{certificate.domain_name}-wildcard",
                resource_group_name=group.name,
                location=group.region,
                pfx_blob=pfx_blob,
                password=pulumi.Output.secret(certificate.password),
                server_farm_id=app.plan_id,
                host_names=[wildcard(certificate.domain_name)],
                opts=self._child_opts(declared, group_key, self._depends_on(declared, app.plan_id)),
            )
            return cert, {"id": cert.id, "thumbprint": cert.thumbprint}

        self._declare(key, declare)
        return key

    def create_or_update_host_name_binding(
        self,
        app: WebApp,
        name: str,
        domain: Domain,
        dns_record_type: DnsRecordType,
        ssl_state: SslState | None = None,
        certificate: Certificate | None = None,
    ) -> HostNameBinding:
        if ssl_state not in (None, SslState.DISABLED) and certificate is None:
            raise ProviderError(
                "create_or_update_host_name_binding",
                f"{ssl_state.value} binding for {name} needs a certificate",
            )
        group = self._group
        if group is None:
            raise ProviderError("create_or_update_host_name_binding", "no resource group")
        app_key = self._keys_by_id.get(app.id)
        if app_key is None:
            raise ProviderError("create_or_update_host_name_binding", f"unknown web app {app.name}")
        zone_key = f"zone:{domain.name}"
        record_key = f"cname:{name}"
        key = f"binding:{app.name}:{name}"
        cert_key = self._declare_certificate(group, app, certificate) if certificate else None

        def declare_record(declared):
            record = azure_native.network.RecordSet(
                resource_name=f"{name}-cname",
                record_type="CNAME",
                relative_record_set_name=relative_record_name(name, domain.name),
                zone_name=domain.name,
                resource_group_name=group.name,
                ttl=CNAME_TTL,
                cname_record=azure_native.network.CnameRecordArgs(cname=app.default_host_name),
                opts=self._child_opts(declared, zone_key),
            )
            return record, {"id": record.id}

        def declare(declared):
            depends = [declared[record_key]] + self._depends_on(declared, domain.id)
            if cert_key:
                depends.append(declared[cert_key])
            binding = azure_native.web.WebAppHostNameBinding(
                resource_name=name,
                name=app.name,
                host_name=name,
                resource_group_name=group.name,
                site_name=app.name,
                domain_id=domain.id,
                custom_host_name_dns_record_type=dns_record_type.value,
                host_name_type="Verified",
                ssl_state=(ssl_state or SslState.DISABLED).value,
                thumbprint=declared[cert_key].thumbprint if cert_key else None,
                opts=self._child_opts(declared, app_key, depends),
            )
            return binding, {
                "id": binding.id,
                "ssl_state": binding.ssl_state,
                "thumbprint": binding.thumbprint,
            }

        self._declare(record_key, declare_record)
        self._declare(key, declare)
        outputs = self._up("create_or_update_host_name_binding", group.region)
        values = self._record(key, outputs)
        return HostNameBinding(
            id=values["id"],
            name=name,
            app_name=app.name,
            domain_id=domain.id,
            dns_record_type=dns_record_type,
            ssl_state=SslState(values.get("ssl_state") or SslState.DISABLED.value),
            thumbprint=values.get("thumbprint"),
        )

    def delete_resource_group(self, group: ResourceGroup) -> DeleteOutcome:
        if self._stack is None or self._group is None or self._group.name != group.name:
            return DeleteOutcome.NOT_FOUND
        try:
            self._stack.destroy(on_output=self._on_output)
            self._stack.workspace.remove_stack(self._stack_name)
        except (auto.CommandError, OSError) as exc:
            raise ProviderError("delete_resource_group", str(exc)) from exc
        self._stack = None
        self._declarations.clear()
        self._keys_by_id.clear()
        self._group = None
        return DeleteOutcome.DELETED
