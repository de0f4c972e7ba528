"""Synthetic customer records for ingest and write benchmarks."""

import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from faker import Faker


@dataclass
class SampleCustomer:
    """A randomized customer document."""

    id: str
    name: str
    city: str
    postal_code: str
    region: str
    partition_key: str
    user_defined_id: int

    def to_document(self, partition_key_field: str = "myPartitionKey") -> Dict[str, Any]:
        """
        Convert to the JSON document stored in the container.

        Args:
            partition_key_field: Document field carrying the partition key value

        Returns:
            Dictionary ready to be written to the store
        """
        return {
            "id": self.id,
            "name": self.name,
            "city": self.city,
            "postalcode": self.postal_code,
            "region": self.region,
            partition_key_field: self.partition_key,
            "userDefinedId": self.user_defined_id,
        }


class CustomerGenerator:
    """Generates fake customers with Faker."""

    def __init__(self, seed: Optional[int] = None, locale: str = "en_US"):
        """
        Initialize the generator.

        Args:
            seed: Optional seed for reproducible records (ids stay random)
            locale: Faker locale for names and addresses
        """
        self._faker = Faker(locale)
        if seed is not None:
            self._faker.seed_instance(seed)

    def generate_many(self, partition_key_value: str, count: int) -> List[SampleCustomer]:
        """Generate ``count`` customers with random ids in one partition."""
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        return [
            self._build(partition_key_value, str(uuid.uuid4()), self._faker.name())
            for _ in range(count)
        ]

    def generate_single(
        self,
        partition_key_value: str,
        item_id: str,
        name: str,
    ) -> SampleCustomer:
        """Generate one customer with a caller-chosen id and name."""
        return self._build(partition_key_value, item_id, name)

    def _build(self, partition_key_value: str, item_id: str, name: str) -> SampleCustomer:
        return SampleCustomer(
            id=item_id,
            name=name,
            city=self._faker.city(),
            postal_code=self._faker.postcode(),
            region=self._faker.state(),
            partition_key=partition_key_value,
            user_defined_id=self._faker.random_int(min=0, max=1000),
        )
