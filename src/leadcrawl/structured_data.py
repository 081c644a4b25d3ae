"""
Structured Data Extraction

Pulls business facts out of Schema.org JSON-LD markup:
- Contact details (email, telephone)
- Founding date and founder
- Employee count (plain number or QuantitativeValue)
- Social profiles (sameAs)
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
import json
import logging

from bs4 import BeautifulSoup

from leadcrawl.constants import MIN_FOUNDED_YEAR
from leadcrawl.models import SchemaOrgData

logger = logging.getLogger(__name__)

# Schema types that describe the business itself
SCHEMA_TYPES_OF_INTEREST = frozenset({
    'LocalBusiness',
    'Organization',
    'Corporation',
    'HomeAndConstructionBusiness',
    'ProfessionalService',
    'FinancialService',
    'InsuranceAgency',
    'RealEstateAgent',
    'LegalService',
    'Dentist',
    'Physician',
    'Store',
    'Restaurant',
    'AutoRepair',
    'Plumber',
    'Electrician',
    'HVACBusiness',
    'RoofingContractor',
    'GeneralContractor',
})

ADDRESS_FIELDS = ('streetAddress', 'addressLocality', 'addressRegion', 'postalCode')


def _iter_items(data: Any) -> Iterable[Dict]:
    """Yield candidate entities from a JSON-LD document."""
    if isinstance(data, list):
        for entry in data:
            yield from _iter_items(entry)
    elif isinstance(data, dict):
        if isinstance(data.get('@graph'), list):
            yield from _iter_items(data['@graph'])
        else:
            yield data


def _types_of(item: Dict) -> List[str]:
    item_type = item.get('@type')
    if isinstance(item_type, list):
        return [str(t) for t in item_type]
    return [str(item_type)] if item_type else []


def _employee_count(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, dict):
        count = value.get('value') or value.get('minValue')
        if isinstance(count, (int, float)) and not isinstance(count, bool):
            return int(count)
    return None


def _parse_item(item: Dict, types: List[str]) -> SchemaOrgData:
    result = SchemaOrgData(types=types)

    if item.get('email'):
        email = str(item['email'])
        result.email = email[7:] if email.lower().startswith('mailto:') else email

    if item.get('telephone'):
        result.telephone = str(item['telephone'])

    if item.get('foundingDate'):
        result.founding_date = str(item['foundingDate'])
        year_text = result.founding_date[:4]
        if year_text.isdigit() and MIN_FOUNDED_YEAR <= int(year_text) <= datetime.now().year:
            result.founding_year = int(year_text)

    if item.get('name'):
        result.name = str(item['name'])

    if item.get('description'):
        result.description = str(item['description'])

    address = item.get('address')
    if isinstance(address, dict):
        result.address = {key: address.get(key) for key in ADDRESS_FIELDS}

    same_as = item.get('sameAs')
    if same_as:
        urls = same_as if isinstance(same_as, list) else [same_as]
        result.same_as = [u for u in urls if isinstance(u, str) and u.startswith('http')]

    if item.get('numberOfEmployees'):
        result.number_of_employees = _employee_count(item['numberOfEmployees'])

    founder = item.get('founder')
    if isinstance(founder, list) and founder:
        founder = founder[0]
    if isinstance(founder, str):
        result.founder = founder
    elif isinstance(founder, dict) and founder.get('name'):
        result.founder = str(founder['name'])

    return result


def extract_schema_org(html: str) -> Optional[SchemaOrgData]:
    """
    Extract business data from the first relevant JSON-LD entity.

    Args:
        html: Page markup

    Returns:
        SchemaOrgData for the first business-type entity with any usable
        field, or None
    """
    if 'application/ld+json' not in html:
        return None

    soup = BeautifulSoup(html, 'html.parser')
    scripts = soup.find_all('script', type='application/ld+json')

    for script in scripts:
        if not script.string:
            continue

        try:
            data = json.loads(script.string)
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping invalid JSON-LD block: {str(e)[:100]}")
            continue

        for item in _iter_items(data):
            types = _types_of(item)
            if not any(t in SCHEMA_TYPES_OF_INTEREST for t in types):
                continue

            result = _parse_item(item, types)
            found = result.found_fields()
            if found:
                logger.debug(f"[schema.org] Found {'/'.join(types)} with: {', '.join(found)}")
                return result

    return None
