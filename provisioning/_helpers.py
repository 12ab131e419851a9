"""
Pure helpers for naming and host names. Testable without Pulumi runtime.

Used by the workflow (ResourceNames, host_name, create_password) and the
Azure client (wildcard, cname_target). No Pulumi types; all functions accept
and return plain Python types so they can be unit-tested without a stack.
"""

import re
import secrets
import string
from dataclasses import dataclass

_DIGITS = string.digits
_LOWER_ALNUM = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class NameRule:
    """
    Azure naming constraints for one resource type.

    Attributes:
        max_length: Longest name the provider accepts.
        allowed: Regex character class (without brackets) of legal characters.
        lowercase: Whether the provider requires lowercase names.
    """

    max_length: int
    allowed: str
    lowercase: bool = False


NAME_RULES: dict[str, NameRule] = {
    "resource_group": NameRule(90, r"A-Za-z0-9_.\-()"),
    "plan": NameRule(40, r"A-Za-z0-9\-"),
    "web_app": NameRule(60, r"a-z0-9\-", lowercase=True),
    "domain": NameRule(63, r"a-z0-9\-", lowercase=True),
}


def random_name(
    prefix: str,
    resource_type: str = "resource_group",
    suffix_length: int = 5,
) -> str:
    """
    Return prefix plus a random numeric suffix, valid for resource_type.

    Characters the resource type disallows are stripped from the prefix and
    the result is truncated to the type's max length, keeping the suffix.

    Args:
        prefix: Leading part of the name (e.g. "webapp1-").
        resource_type: Key into NAME_RULES.
        suffix_length: Number of random digits appended.

    Returns:
        A name such as "webapp1-48213".
    """
    rule = NAME_RULES[resource_type]
    if rule.lowercase:
        prefix = prefix.lower()
    cleaned = re.sub(f"[^{rule.allowed}]", "", prefix)
    suffix = "".join(secrets.choice(_DIGITS) for _ in range(suffix_length))
    return f"{cleaned[: rule.max_length - suffix_length]}{suffix}"


def host_name(
    subdomain: str,
    domain: str,
) -> str:
    """
    Build a custom host name like 'webapp1-123.example.com'.

    Trailing dots are dropped; App Service host names are not FQDN-dotted.
    """
    return f"{subdomain}.{domain.rstrip('.')}"


def wildcard(
    domain: str,
) -> str:
    """Return the wildcard host covering every subdomain of domain."""
    return f"*.{domain.rstrip('.')}"


def relative_record_name(
    host: str,
    domain: str,
) -> str:
    """
    Return the record name of host inside the domain's DNS zone.

    'webapp1-123.example.com' in zone 'example.com' is 'webapp1-123'.
    """
    zone_suffix = f".{domain.rstrip('.')}"
    return host[: -len(zone_suffix)] if host.endswith(zone_suffix) else host


def create_password(
    length: int = 16,
) -> str:
    """
    Produce a random password with letters, digits and punctuation.

    At least one character of each class is included so that provider
    password-complexity checks pass.
    """
    classes = [string.ascii_lowercase, string.ascii_uppercase, _DIGITS, "!@#$%^&*"]
    chars = [secrets.choice(c) for c in classes]
    pool = "".join(classes)
    chars += [secrets.choice(pool) for _ in range(max(length, len(classes)) - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


@dataclass(frozen=True)
class ResourceNames:
    """
    Every provider-side name used by one provisioning run.

    Attributes:
        group: Resource group name.
        plan: App service plan created alongside the first app.
        app1: First web app.
        app2: Second web app, sharing app1's plan.
        domain: Purchased domain (second-level label plus ".com").
    """

    group: str
    plan: str
    app1: str
    app2: str
    domain: str

    @classmethod
    def generate(cls, tld: str = "com") -> "ResourceNames":
        return cls(
            group=random_name("rgNEMV_", "resource_group"),
            plan=random_name("plan-", "plan"),
            app1=random_name("webapp1-", "web_app"),
            app2=random_name("webapp2-", "web_app"),
            domain=f"{random_name('jsdkdemo-', 'domain')}.{tld}",
        )
