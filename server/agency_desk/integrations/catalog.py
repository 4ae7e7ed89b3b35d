"""
Integrations supported by the platform.

The catalog is compiled into the service; agencies can only connect to
entries listed here and every merged view is ordered like this tuple.
"""

from dataclasses import dataclass
from enum import Enum

from agency_desk.integrations.errors import InvalidIntegration


class IntegrationCategory(str, Enum):
    CARRIERS = "carriers"
    MARKETPLACES = "marketplaces"
    CRM = "crm"
    COMMUNICATION = "communication"


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    id: str
    name: str
    description: str
    category: IntegrationCategory


CATALOG: tuple[CatalogEntry, ...] = (
    CatalogEntry(
        id="ivans",
        name="IVANS",
        description="Insurance industry standard for carrier downloads and messages",
        category=IntegrationCategory.CARRIERS,
    ),
    CatalogEntry(
        id="healthsherpa",
        name="HealthSherpa",
        description="Health insurance marketplace enrollment platform",
        category=IntegrationCategory.MARKETPLACES,
    ),
    CatalogEntry(
        id="covered-ca",
        name="Covered California",
        description="California state health insurance marketplace",
        category=IntegrationCategory.MARKETPLACES,
    ),
    CatalogEntry(
        id="medicare",
        name="Medicare.gov",
        description="Federal Medicare enrollment and plan comparison",
        category=IntegrationCategory.MARKETPLACES,
    ),
    CatalogEntry(
        id="salesforce",
        name="Salesforce",
        description="CRM platform for customer relationship management",
        category=IntegrationCategory.CRM,
    ),
    CatalogEntry(
        id="hubspot",
        name="HubSpot",
        description="Marketing, sales, and service CRM platform",
        category=IntegrationCategory.CRM,
    ),
    CatalogEntry(
        id="twilio",
        name="Twilio",
        description="SMS and voice communication platform",
        category=IntegrationCategory.COMMUNICATION,
    ),
    CatalogEntry(
        id="sendgrid",
        name="SendGrid",
        description="Email delivery and marketing platform",
        category=IntegrationCategory.COMMUNICATION,
    ),
)

_BY_ID = {entry.id: entry for entry in CATALOG}


def get_catalog() -> tuple[CatalogEntry, ...]:
    return CATALOG


def get_integration(integration_id: str) -> CatalogEntry:
    try:
        return _BY_ID[integration_id]
    except KeyError:
        raise InvalidIntegration(integration_id) from None
