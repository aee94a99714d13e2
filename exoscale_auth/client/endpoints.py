"""Endpoint families of the Exoscale API and their base URLs.

The v2 API is served per zone from ``https://api-<zone>.exoscale.com``; the
legacy v1 API and the DNS API each have a single fixed host.
"""

import re
from dataclasses import dataclass
from typing import Optional

from exoscale_auth.client.models import ApiFamily

DEFAULT_V1_BASE_URL = "https://api.exoscale.com"
DEFAULT_V2_URL_TEMPLATE = "https://api-{zone}.exoscale.com"
DEFAULT_DNS_BASE_URL = "https://api.exoscale.com/dns"
DEFAULT_ZONE = "ch-gva-2"

_ZONE_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


@dataclass(frozen=True)
class Endpoints:
    """Base URLs for each API family.

    Example:
        endpoints = Endpoints()
        endpoints.url_for(ApiFamily.V2, "/v2/zone", zone="de-fra-1")
        # "https://api-de-fra-1.exoscale.com/v2/zone"
    """

    v1_base_url: str = DEFAULT_V1_BASE_URL
    v2_url_template: str = DEFAULT_V2_URL_TEMPLATE
    dns_base_url: str = DEFAULT_DNS_BASE_URL
    default_zone: str = DEFAULT_ZONE

    def base_url(self, api: ApiFamily, zone: Optional[str] = None) -> str:
        """Return the base URL of an API family."""
        api = ApiFamily(api)
        if api == ApiFamily.V1:
            return self.v1_base_url
        if api == ApiFamily.DNS:
            return self.dns_base_url

        zone = zone or self.default_zone
        if not _ZONE_PATTERN.match(zone):
            raise ValueError(f"Invalid zone identifier: {zone!r}")
        return self.v2_url_template.format(zone=zone)

    def url_for(self, api: ApiFamily, path: str, zone: Optional[str] = None) -> str:
        """Join a base URL with a path, keeping any path prefix of the base."""
        return self.base_url(api, zone).rstrip("/") + path
