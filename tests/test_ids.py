from types import SimpleNamespace

import pytest

from schoolnet.ids import assessment_id, institution_id, section_id, staff_id


def test_bare_ids():
    assert institution_id("123") == "123"
    assert section_id(42) == "42"


def test_primary_field_wins():
    assert institution_id({"id": "d1", "institutionId": "d2"}) == "d1"


def test_alternate_field():
    assert institution_id({"institutionId": "d2"}) == "d2"
    assert section_id({"sectionId": "s9"}) == "s9"
    assert assessment_id({"instanceId": "a7"}) == "a7"


def test_staff_field_order():
    assert staff_id({"id": "x", "teacher": "t", "staffId": "s"}) == "s"
    assert staff_id({"id": "x", "teacher": "t"}) == "t"
    assert staff_id({"id": "x"}) == "x"


def test_object_attributes():
    assert section_id(SimpleNamespace(sectionId="s3")) == "s3"


def test_mapping_without_id_fields():
    with pytest.raises(ValueError):
        section_id({"name": "Algebra"})
