"""Counter aggregate — named monotonic sequences (resolution ticket numbers).

The counter is loaded, incremented and saved inside the same unit of work
as the record that consumes the number. Two writers racing on the same
version cannot both commit, so every issued number is unique.
"""

from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace

RESOLUTION_TICKETS = "resolution_tickets"


@marketplace.aggregate
class Counter:
    name = String(identifier=True, max_length=100)
    value = Integer(default=0, min_value=0)

    def increment(self) -> int:
        self.value += 1
        return self.value


def next_value(name: str) -> int:
    """Increment the named counter, creating it on first use."""
    repo = current_domain.repository_for(Counter)
    try:
        counter = repo.get(name)
    except ObjectNotFoundError:
        counter = Counter(name=name)
    value = counter.increment()
    repo.add(counter)
    return value
