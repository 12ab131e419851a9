"""
Transient records for the provider-side resources of one run.

Records are immutable snapshots of what the provider returned. Nothing here
is persisted; every resource is deleted with its resource group at the end of
the run.
"""

from dataclasses import dataclass, field
from enum import Enum


class DnsRecordType(str, Enum):
    CNAME = "CName"
    A = "A"


class SslState(str, Enum):
    DISABLED = "Disabled"
    SNI_ENABLED = "SniEnabled"
    IP_BASED_ENABLED = "IpBasedEnabled"


class DeleteOutcome(str, Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ResourceGroup:
    id: str
    name: str
    region: str


@dataclass(frozen=True)
class SiteConfig:
    """Runtime descriptor applied to both web apps."""

    net_framework_version: str = "v4.6"
    windows_fx_version: str | None = None


@dataclass(frozen=True)
class PlanSku:
    name: str = "S1"
    tier: str = "Standard"


@dataclass(frozen=True)
class WebApp:
    id: str
    name: str
    region: str
    plan_id: str
    default_host_name: str


@dataclass(frozen=True)
class Address:
    address1: str
    city: str
    country: str
    postal_code: str
    state: str


@dataclass(frozen=True)
class RegistrantContact:
    """
    Registrant profile used for every domain contact role.

    Attributes:
        email, name_first, name_last, phone: Contact details.
        address: Mailing address.
        agreed_by: IP address recorded on the purchase consent.
        agreement_keys: Registrar legal agreements accepted for the purchase.
    """

    email: str
    name_first: str
    name_last: str
    phone: str
    address: Address
    agreed_by: str = "127.0.0.1"
    agreement_keys: tuple[str, ...] = ("DNRA",)


DEFAULT_REGISTRANT = RegistrantContact(
    email="jondoe@contoso.com",
    name_first="Jon",
    name_last="Doe",
    phone="+1.4258828080",
    address=Address(
        address1="123 4th Ave",
        city="Redmond",
        country="US",
        postal_code="98052",
        state="WA",
    ),
)


@dataclass(frozen=True)
class Domain:
    id: str
    name: str
    privacy: bool = True
    auto_renew: bool = False


@dataclass(frozen=True)
class Certificate:
    """
    A PFX file on local disk.

    The password is kept out of repr so snapshots can be logged.
    """

    path: str
    password: str = field(repr=False)
    domain_name: str
    thumbprint: str


@dataclass(frozen=True)
class HostNameBinding:
    id: str
    name: str
    app_name: str
    domain_id: str
    dns_record_type: DnsRecordType
    ssl_state: SslState = SslState.DISABLED
    thumbprint: str | None = None
