from datetime import datetime, timedelta, timezone

import pytest
from rdflib import URIRef

from rdfldp.store import GraphStore


@pytest.fixture
def store():
    return GraphStore()


@pytest.fixture
def uri():
    return URIRef('http://ex.org/moomin')


@pytest.fixture
def clock(monkeypatch):
    """Replaces the timestamp source for resources with one that advances by
    one second on every call, and returns the list of timestamps issued."""
    issued = []

    def _now():
        timestamp = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=len(issued))
        issued.append(timestamp)
        return timestamp

    monkeypatch.setattr('rdfldp.ldp.resource.now', _now)
    return issued
