"""Tests for sideloaded serialization."""

import json

import pytest

from graphson import InvalidIncludeError, SIDELOADING, SerializationOptions, SerializerDefinition, serialize
from graph_models import (
    REGISTRY,
    Company,
    CompanySerializer,
    Person,
    PersonSerializer,
    Roster,
    Skill,
    SkillSerializer,
)


def sideload(root, *includes, **kwargs):
    return CompanySerializer(root, **kwargs).includes(*includes).as_json()


class TestScenario:
    """The company / employees / skills example."""

    def test_buckets(self, company):
        result = sideload(company, {"employees": ["skills"]})
        assert result == {
            "root": 1,
            "company": [{"id": 1, "name": "Acme", "brand": None, "employees": [10, 11]}],
            "person": [
                {
                    "id": 10,
                    "first_name": "Alice",
                    "last_name": None,
                    "dob": None,
                    "email": None,
                    "skills": [100],
                },
                {"id": 11, "first_name": "Bob", "last_name": None, "dob": None, "email": None},
            ],
            "skill": [{"id": 100, "name": "Python", "description": "snakes"}],
        }

    def test_root_key_comes_first(self, company):
        result = sideload(company, {"employees": ["skills"]})
        assert list(result) == ["root", "company", "person", "skill"]

    def test_invalid_include_produces_nothing(self, company):
        serializer = CompanySerializer(company).includes({"employees": ["address"]})
        with pytest.raises(InvalidIncludeError) as excinfo:
            serializer.as_json()
        assert excinfo.value.type_id == "person"
        assert excinfo.value.relation == "address"

    def test_output_is_json(self, company):
        result = sideload(company, {"employees": ["skills"]})
        assert json.loads(json.dumps(result)) == result


class TestReferences:
    """Reference fields on flattened records."""

    def test_references_without_include(self, linked_company):
        result = sideload(linked_company)
        assert result["company"] == [
            {"id": 1, "name": "Acme", "brand": "ACME", "address": 5, "employees": [10, 11]}
        ]
        # Targets of relations that were not included get no bucket
        assert list(result) == ["root", "company"]

    def test_has_one_before_has_many(self, linked_company):
        record = sideload(linked_company)["company"][0]
        assert list(record) == ["id", "name", "brand", "address", "employees"]

    def test_absent_relation_omitted(self, company):
        bob = sideload(company, "employees")["person"][1]
        assert "skills" not in bob
        assert "employer" not in bob

    def test_empty_has_many_emits_empty_list(self, linked_company):
        bob = sideload(linked_company, "employees")["person"][1]
        assert bob["skills"] == []

    def test_has_one_reference(self, linked_company):
        alice = sideload(linked_company, "employees")["person"][0]
        assert alice["employer"] == 1

    def test_non_json_values_are_coerced(self, linked_company):
        alice = sideload(linked_company, "employees")["person"][0]
        assert alice["dob"] == "1990-05-17"

    def test_coercion_can_be_disabled(self, linked_company):
        options = SerializationOptions(coerce_values=False)
        alice = sideload(linked_company, "employees", options=options)["person"][0]
        assert alice["dob"] == linked_company.employees[0].dob


class TestDeduplication:
    """Objects reachable along several paths are emitted once."""

    def test_shared_skill(self):
        shared = Skill(id=100, name="Python")
        company = Company(
            id=1,
            employees=[Person(id=10, skills=[shared]), Person(id=11, skills=[shared])],
        )
        result = sideload(company, {"employees": "skills"})
        assert result["skill"] == [{"id": 100, "name": "Python", "description": None}]
        assert [person["skills"] for person in result["person"]] == [[100], [100]]

    def test_equal_identity_counts_as_same_object(self):
        # Identity is the identifier, not the Python object
        company = Company(id=1, employees=[Person(id=10, first_name="first"), Person(id=10, first_name="second")])
        result = sideload(company, "employees")
        assert result["person"] == [
            {"id": 10, "first_name": "first", "last_name": None, "dob": None, "email": None}
        ]

    def test_same_id_different_types_are_distinct(self):
        company = Company(id=7, employees=[Person(id=7)])
        result = sideload(company, "employees")
        assert [record["id"] for record in result["company"]] == [7]
        assert [record["id"] for record in result["person"]] == [7]

    def test_root_collection_with_repeats(self):
        acme = Company(id=1, name="Acme")
        result = sideload([acme, Company(id=2), acme])
        assert result["root"] == [1, 2, 1]
        assert [record["id"] for record in result["company"]] == [1, 2]

    def test_first_path_decides_descent(self):
        # Alice is first reached under employees, which selects no skills;
        # reaching her again under parent_company.employees.skills does
        # not walk her again
        alice = Person(id=10, skills=[Skill(id=100)])
        company = Company(id=1, employees=[alice], parent_company=Company(id=2, employees=[alice]))
        result = sideload(company, ["employees", {"parent_company": {"employees": "skills"}}])
        assert "skill" not in result
        assert result["person"] == [
            {"id": 10, "first_name": None, "last_name": None, "dob": None, "email": None, "skills": [100]}
        ]

    def test_deeper_path_first_descends(self):
        alice = Person(id=10, skills=[Skill(id=100)])
        company = Company(id=1, employees=[alice], parent_company=Company(id=2, employees=[alice]))
        result = sideload(company, [{"parent_company": {"employees": "skills"}}, "employees"])
        assert [record["id"] for record in result["skill"]] == [100]


class TestIterableRelations:
    """has_many values that are iterable but not sequences."""

    def test_dict_values(self):
        people = {10: Person(id=10), 11: Person(id=11)}
        result = sideload(Company(id=1, employees=people.values()), "employees")
        assert result["company"][0]["employees"] == [10, 11]
        assert [record["id"] for record in result["person"]] == [10, 11]

    def test_iter_only_collection(self):
        company = Company(id=1, employees=Roster([Person(id=10), Person(id=11)]))
        result = sideload(company, "employees")
        assert result["company"][0]["employees"] == [10, 11]
        assert [record["id"] for record in result["person"]] == [10, 11]

    def test_iter_only_root(self):
        result = sideload(Roster([Company(id=2), Company(id=1)]))
        assert result["root"] == [2, 1]


class TestCycles:
    """Cyclic graphs terminate."""

    def test_two_node_cycle(self, linked_company):
        result = sideload(linked_company, {"employees": {"employer": {"employees": "employer"}}})
        assert [record["id"] for record in result["company"]] == [1]
        assert [record["id"] for record in result["person"]] == [10, 11]

    def test_self_cycle(self):
        acme = Company(id=1)
        acme.suppliers = [acme]
        acme.parent_company = acme
        result = sideload(acme, {"suppliers": {"suppliers": "parent_company"}, "parent_company": []})
        assert result == {"root": 1, "company": [{"id": 1, "name": None, "brand": None,
                                                  "parent_company": 1, "suppliers": [1]}]}

    def test_skill_person_cycle(self, linked_company):
        alice = linked_company.employees[0]
        result = SkillSerializer(alice.skills).includes({"person": {"skills": "person"}}).as_json()
        assert result["root"] == [100, 101]
        assert [record["id"] for record in result["skill"]] == [100, 101]
        assert [record["id"] for record in result["person"]] == [10]


class TestOrdering:
    """Bucket order reflects first discovery."""

    def test_first_discovery_order(self, linked_company):
        result = sideload(linked_company, {"employees": ["skills"], "address": []})
        assert list(result) == ["root", "company", "person", "skill", "address"]
        assert [record["id"] for record in result["person"]] == [10, 11]
        assert [record["id"] for record in result["skill"]] == [100, 101]

    def test_depth_first_discovery(self):
        # Parent company is discovered before the employees are visited,
        # so it lands in the bucket right after its subsidiary
        parent = Company(id=2)
        company = Company(id=1, parent_company=parent, employees=[Person(id=10, employer=Company(id=3))])
        result = sideload(company, ["parent_company", {"employees": "employer"}])
        assert [record["id"] for record in result["company"]] == [1, 2, 3]

    def test_root_collection_order(self):
        result = sideload([Company(id=3), Company(id=1), Company(id=2)])
        assert result["root"] == [3, 1, 2]
        assert [record["id"] for record in result["company"]] == [3, 1, 2]


class TestBuckets:
    """Which buckets appear in the output."""

    def test_only_encountered_types(self, company):
        # Nobody has an address, so no address bucket
        result = sideload(company, ["address", {"employees": "skills"}])
        assert "address" not in result
        assert set(result) == {"root", "company", "person", "skill"}

    def test_empty_buckets_option(self, company):
        options = SerializationOptions(empty_buckets=True)
        result = sideload(company, ["address", "employees"], options=options)
        assert result["address"] == []
        assert set(result) == {"root", "company", "person", "address"}

    def test_empty_root_collection(self):
        assert sideload([]) == {"root": []}

    def test_empty_root_collection_with_empty_buckets(self):
        options = SerializationOptions(empty_buckets=True)
        assert sideload([], "employees", options=options) == {"root": [], "company": [], "person": []}

    def test_none_root(self):
        assert sideload(None) == {"root": None}

    def test_custom_root_key(self, company):
        result = sideload(company, options=SerializationOptions(root_key="data"))
        assert result["data"] == 1
        assert "root" not in result


class TestFunctionalApi:
    """The module-level serialize() function."""

    def test_type_inferred_from_root(self, company):
        result = serialize(company, {"employees": "skills"}, registry=REGISTRY)
        assert result == sideload(company, {"employees": "skills"})

    def test_type_inferred_from_collection(self, company):
        result = serialize([company], registry=REGISTRY, mode=SIDELOADING)
        assert result["root"] == [1]

    def test_generator_root_needs_type_id(self, company):
        with pytest.raises(ValueError):
            serialize((c for c in [company]), registry=REGISTRY)
        result = serialize((c for c in [company]), registry=REGISTRY, type_id="company")
        assert result["root"] == [1]

    def test_generator_relation(self):
        person = Person(id=10, skills=(skill for skill in [Skill(id=100), Skill(id=101)]))
        result = PersonSerializer(person).includes("skills").as_json()
        assert result["person"][0]["skills"] == [100, 101]
        assert [record["id"] for record in result["skill"]] == [100, 101]

    def test_root_key_collision(self, company, registry):
        registry.register("root", None, SerializerDefinition(type_id="root", mode=SIDELOADING, attributes=("id",)))
        with pytest.raises(ValueError):
            serialize(company, type_id="root", registry=registry)
