"""
Provider client facade.

The workflow reaches the cloud management plane only through this protocol,
so it can be exercised against an in-memory fake. Implementations must:

- block until each long-running operation is terminal;
- treat create-or-update calls as idempotent on the resource name;
- raise ProviderError on failure;
- report a missing group on delete as DeleteOutcome.NOT_FOUND, not an error.
"""

from typing import Protocol, runtime_checkable

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


@runtime_checkable
class ProviderClient(Protocol):
    def create_or_update_resource_group(self, name: str, region: str) -> ResourceGroup:
        ...

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
        """
        Create or update a web app.

        With plan_id the app joins that plan. Otherwise a new plan named
        plan_name is created and its id is returned as WebApp.plan_id.
        """
        ...

    def purchase_domain(
        self,
        group: ResourceGroup,
        name: str,
        registrant: RegistrantContact,
    ) -> Domain:
        """Purchase name with privacy enabled and auto-renew disabled."""
        ...

    def create_or_update_host_name_binding(
        self,
        app: WebApp,
        name: str,
        domain: Domain,
        dns_record_type: DnsRecordType,
        ssl_state: SslState | None = None,
        certificate: Certificate | None = None,
    ) -> HostNameBinding:
        """
        Bind host name to app. Calling again with the same app and name
        updates the existing binding. An SNI ssl_state needs a certificate.
        """
        ...

    def delete_resource_group(self, group: ResourceGroup) -> DeleteOutcome:
        ...
