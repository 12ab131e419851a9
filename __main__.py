"""
Manage web apps with a purchased domain and wildcard SSL - entrypoint.

Runs one provisioning pass against Azure App Service and tears it down again:

- **Web apps**: two apps created under one new app service plan.
- **Domain**: a .com domain purchased into the resource group (privacy on,
  auto-renew off so it can be cancelled for a refund).
- **Certificate**: a self-signed wildcard certificate for the domain.
- **Bindings**: ``app1.<domain>`` bound over HTTP, then upgraded to SNI SSL;
  ``app2.<domain>`` bound with SNI SSL directly.

The resource group is deleted at the end whatever happened. Credentials come
from CLIENT_ID, CLIENT_SECRET, TENANT_ID and SUBSCRIPTION_ID.
"""

import sys

from provisioning.runner import run


def main():
    """Run the workflow once and exit with its status code."""
    sys.exit(run())


if __name__ == "__main__":
    main()
