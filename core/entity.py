"""
Customer entity stored by the benchmark.

A flat record keyed by (PartitionKey, RowKey) with three string properties.
The Bio property is a 1000 character blob so every write carries some weight.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

EMAIL_DOMAIN = "contoso.com"
EMAIL_LENGTH = 6
BIO_LENGTH = 1000
INITIAL_PHONE_NUMBER = "425-555-0102"

# Table property name -> dataclass field
PROPERTY_MAP = {
    'PartitionKey': 'partition_key',
    'RowKey': 'row_key',
    'Email': 'email',
    'PhoneNumber': 'phone_number',
    'Bio': 'bio',
}


@dataclass
class CustomerEntity:
    """A single customer record."""
    partition_key: str
    row_key: str
    email: str = ""
    phone_number: str = ""
    bio: str = ""

    @property
    def key(self) -> Tuple[str, str]:
        return (self.partition_key, self.row_key)

    def to_table_entity(self) -> Dict[str, str]:
        """Serialize to the property names used on the wire."""
        return {prop: getattr(self, attr) for prop, attr in PROPERTY_MAP.items()}

    @classmethod
    def from_table_entity(cls, entity: Mapping[str, Any]) -> 'CustomerEntity':
        """
        Build from a table entity mapping.

        Service metadata (etag, Timestamp, ...) is ignored.
        """
        return cls(**{
            attr: entity.get(prop, "")
            for prop, attr in PROPERTY_MAP.items()
        })


def new_customer(generator, email_domain: str = EMAIL_DOMAIN) -> CustomerEntity:
    """
    Create a customer with a fresh random identity.

    Args:
        generator: RandomStringGenerator used for Email and Bio
        email_domain: Domain appended to the random Email local part

    Returns:
        New CustomerEntity, not yet stored anywhere
    """
    return CustomerEntity(
        partition_key=str(uuid.uuid4()),
        row_key=str(uuid.uuid4()),
        email=f"{generator.generate(EMAIL_LENGTH)}@{email_domain}",
        phone_number=INITIAL_PHONE_NUMBER,
        bio=generator.generate(BIO_LENGTH),
    )
