"""Named monotonic counters (e.g. human-facing order numbers).

Each counter is a tiny aggregate, so incrementing it goes through the same
versioned save as any other aggregate instead of a count-then-insert.
"""

from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String

from storefront.domain import storefront


@storefront.aggregate
class Sequence:
    name = String(identifier=True, max_length=50)
    value = Integer(default=0, min_value=0)

    def advance(self) -> int:
        self.value = (self.value or 0) + 1
        return self.value


@storefront.repository(part_of=Sequence)
class SequenceRepository:
    def next_value(self, name: str) -> int:
        """Advance and persist the counter ``name``, creating it on first use."""
        try:
            sequence = self.get(name)
        except ObjectNotFoundError:
            sequence = Sequence(name=name, value=0)
        value = sequence.advance()
        self.add(sequence)
        return value
