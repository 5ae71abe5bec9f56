# primer_specificity/sequence_store.py

"""
Sequence entities and the ordered store that holds them for one analysis.

A store is built once when sequences are loaded and is never modified
afterwards. Every other stage only reads from it.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)

GAP_CHAR = '-'
NUCLEOTIDE_ALPHABET = frozenset('ATGC-')

# Process-wide counter, identifiers stay unique for the whole session
_id_counter = itertools.count(1)


def generate_sequence_id() -> str:
    """Return a new session-unique sequence identifier (seq1, seq2, ...)."""
    return f"seq{next(_id_counter)}"


@dataclass(frozen=True)
class SequenceEntity:
    """
    A loaded nucleotide sequence.

    Attributes:
        identifier: Unique, stable identifier used for lookups
        header: Display header (the FASTA description line)
        sequence: Uppercase nucleotide string over {A,T,G,C,-}
    """
    identifier: str
    header: str
    sequence: str

    @property
    def length(self) -> int:
        return len(self.sequence)

    @classmethod
    def create(cls, header: str, sequence: str, identifier: Optional[str] = None) -> 'SequenceEntity':
        """Build an entity, assigning a fresh identifier when none is given."""
        return cls(
            identifier=identifier if identifier is not None else generate_sequence_id(),
            header=header,
            sequence=sequence
        )


class SequenceStore:
    """Ordered, read-only collection of sequence entities."""

    def __init__(self, entities: Iterable[SequenceEntity]):
        self._entities = tuple(entities)
        self._index: Dict[str, SequenceEntity] = {}

        for entity in self._entities:
            if entity.identifier in self._index:
                raise ValueError(f"Duplicate sequence identifier: {entity.identifier}")
            self._index[entity.identifier] = entity

        logger.debug(f"Sequence store created with {len(self._entities)} sequences")

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[SequenceEntity]:
        return iter(self._entities)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._index

    @property
    def entities(self) -> tuple:
        return self._entities

    def get(self, identifier: str) -> SequenceEntity:
        """
        Look up an entity by identifier.

        Raises:
            KeyError: If no entity has this identifier
        """
        try:
            return self._index[identifier]
        except KeyError:
            raise KeyError(f"Unknown sequence identifier: {identifier}") from None

    def backgrounds_for(self, target_id: str) -> List[SequenceEntity]:
        """All entities except the target, in load order."""
        return [entity for entity in self._entities if entity.identifier != target_id]

    def find(self, query: str) -> Optional[SequenceEntity]:
        """
        Resolve a user-supplied reference to an entity.

        The query is tried as an identifier, then as the first word of a
        header, then as a 1-based position in the store.
        """
        if query in self._index:
            return self._index[query]

        for entity in self._entities:
            header_parts = entity.header.split()
            if header_parts and header_parts[0] == query:
                return entity

        if query.isdigit():
            position = int(query)
            if 1 <= position <= len(self._entities):
                return self._entities[position - 1]

        return None
