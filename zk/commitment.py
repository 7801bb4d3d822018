"""Poseidon commitment to a secret attribute value."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from .field import (FieldElement, RandomSource, parse_field_element,
                    random_field_element, to_canonical_string, validate)
from .poseidon import poseidon_hash

logger = logging.getLogger(__name__)


def new_salt(rng: Optional[RandomSource] = None) -> FieldElement:
    """Fresh blinding factor; never reuse one across commitments"""
    return random_field_element(rng)


def commit(attribute_value: int, salt: int) -> FieldElement:
    """Poseidon(attributeValue, salt), in the circuit's witness order"""
    return poseidon_hash([validate(attribute_value), validate(salt)])


@dataclass(frozen=True)
class CommitmentOpening:
    """Commitment together with the secrets that open it"""
    attribute_value: FieldElement
    salt: FieldElement
    commitment: FieldElement

    def verify(self) -> bool:
        return commit(self.attribute_value, self.salt) == self.commitment

    def to_json(self) -> Dict[str, str]:
        return {
            'attributeValue': to_canonical_string(self.attribute_value),
            'salt': to_canonical_string(self.salt),
            'commitmentHash': to_canonical_string(self.commitment),
        }

    @classmethod
    def from_json(cls, data: Dict[str, str]) -> 'CommitmentOpening':
        return cls(
            parse_field_element(data['attributeValue']),
            parse_field_element(data['salt']),
            parse_field_element(data['commitmentHash']),
        )


def create_commitment(attribute_value: int, rng: Optional[RandomSource] = None) -> CommitmentOpening:
    """Commit to ``attribute_value`` under a freshly sampled salt"""
    value = validate(attribute_value)
    salt = new_salt(rng)
    commitment = commit(value, salt)
    logger.debug(f"Created commitment {str(commitment)[:10]}...")
    return CommitmentOpening(value, salt, commitment)
