"""Shared test fixtures for the process repository."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from processrepo.service.clock import FixedClock
from processrepo.service.repository import RepositoryService, create_repository_service
from processrepo.settings import Settings
from processrepo.storage.memory import InMemoryStorage

START = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def repository_service(clock: FixedClock, storage: InMemoryStorage) -> RepositoryService:
    return create_repository_service(Settings(), clock=clock, storage=storage)


def bpmn(*processes: str, executable: bool = True) -> str:
    """A minimal BPMN 2.0 document with one ``<process>`` per given key."""
    flag = "true" if executable else "false"
    body = "\n".join(
        f'  <process id="{key}" name="{key.title()}" isExecutable="{flag}">\n'
        f'    <startEvent id="start"/>\n'
        f"  </process>"
        for key in processes
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<definitions xmlns="http://www.omg.org/spec/BPMN/20100524/MODEL"\n'
        '             targetNamespace="http://example.com/processes">\n'
        f"{body}\n"
        "</definitions>\n"
    )


ORDER_PROCESS = bpmn("orderProcess")
ORDER_PROCESS_V2 = ORDER_PROCESS.replace('<startEvent id="start"/>', '<startEvent id="begin"/>')

SAMPLE_MANIFEST_YAML = """\
id: proj-42
name: order-handling
version: 1.0.0
description: Order handling processes
createdBy: alice
creationDate: "2024-02-01T10:00:00Z"
"""
