import copy

import pytest

from wipsim.config import DEFAULT_CFG
from wipsim.entities import Ticket


@pytest.fixture
def cfg():
    return copy.deepcopy(DEFAULT_CFG)


@pytest.fixture
def make_tickets():
    """Build an arena of tickets from (start_day, effort) pairs, ids in order."""
    def _make(pairs, days=5):
        tickets = []
        for i, (start, effort) in enumerate(pairs):
            t = Ticket.new(start, effort, days)
            t.tid = i
            tickets.append(t)
        return tickets
    return _make
