import datetime

import pytest

from graphson import SerializerRegistry
from graph_models import Address, Company, Person, Skill


@pytest.fixture
def registry():
    """An empty registry for tests declaring their own serializers."""
    return SerializerRegistry()


@pytest.fixture
def company():
    """Company 1 employing Alice (10, one skill) and Bob (11, no skills set)."""
    python = Skill(id=100, name="Python", description="snakes")
    alice = Person(id=10, first_name="Alice", skills=[python])
    bob = Person(id=11, first_name="Bob")
    return Company(id=1, name="Acme", employees=[alice, bob])


@pytest.fixture
def linked_company():
    """A company whose people and skills point back at their owners."""
    acme = Company(id=1, name="Acme", brand="ACME", address=Address(id=5, street_address="1 Road Runner Way"))
    alice = Person(id=10, first_name="Alice", dob=datetime.date(1990, 5, 17), employer=acme)
    bob = Person(id=11, first_name="Bob", employer=acme, skills=[])
    alice.skills = [
        Skill(id=100, name="Python", person=alice),
        Skill(id=101, name="Rust", person=alice),
    ]
    acme.employees = [alice, bob]
    return acme
