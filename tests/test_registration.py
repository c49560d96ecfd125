from datetime import date
from decimal import Decimal

import pytest

from daycare.errors import ChildNotFound, ConflictError, GuardianNotFound, OwnerNotFound
from daycare.registration import RegistrationService
from schemas import ChildCreate, ChildUpdate, FeeStructureCreate, GuardianCreate, OwnerCreate


@pytest.fixture
def service(store):
    return RegistrationService(store)


def new_guardian(service, email="pat@mail.com"):
    return service.create_guardian(GuardianCreate(name="Pat", email=email, phone_number="0123456789"))


def test_only_one_owner(service, store):
    owner = service.create_owner(OwnerCreate(name="Olive", email="olive@mail.com", phone_number="0123456789"))
    assert store.active_configuration().owner_id == owner.id

    with pytest.raises(ConflictError):
        service.create_owner(OwnerCreate(name="Other", email="other@mail.com", phone_number="0123456789"))
    assert len(store.owners.list()) == 1


def test_guardian_email_is_unique_ignoring_case(service):
    new_guardian(service, "pat@mail.com")
    with pytest.raises(ConflictError):
        new_guardian(service, "PAT@mail.com")


def test_child_is_linked_to_guardian(service):
    guardian = new_guardian(service)
    first = service.create_child(ChildCreate(name="Ann", birthdate=date(2021, 5, 1), guardian_id=guardian.id))
    second = service.create_child(ChildCreate(name="Bo", birthdate=date(2022, 6, 2), guardian_id=guardian.id))

    assert service.get_guardian(guardian.id).child_ids == [first.id, second.id]
    assert first.guardian_id == guardian.id


def test_child_needs_existing_guardian(service, store):
    with pytest.raises(GuardianNotFound):
        service.create_child(ChildCreate(name="Ann", birthdate=date(2021, 5, 1), guardian_id="nobody"))
    assert store.children.list() == []


def test_update_child_changes_only_given_fields(service):
    guardian = new_guardian(service)
    child = service.create_child(ChildCreate(name="Ann", birthdate=date(2021, 5, 1), guardian_id=guardian.id))

    updated = service.update_child(child.id, ChildUpdate(name="Annie"))

    assert updated.name == "Annie"
    assert updated.birthdate == child.birthdate
    assert updated.guardian_id == child.guardian_id
    assert updated.created_at == child.created_at
    assert service.get_child(child.id) == updated


def test_update_missing_child(service):
    with pytest.raises(ChildNotFound):
        service.update_child("nope", ChildUpdate(name="X"))


def test_fee_structure_requires_owner(service):
    with pytest.raises(OwnerNotFound):
        service.create_fee_structure(FeeStructureCreate(name="Monthly", amount=Decimal("100"), owner_id="nobody"))


def test_new_fee_structure_becomes_active(service, store):
    owner = service.create_owner(OwnerCreate(name="Olive", email="olive@mail.com", phone_number="0123456789"))
    first = service.create_fee_structure(FeeStructureCreate(name="A", amount=Decimal("100"), owner_id=owner.id))
    second = service.create_fee_structure(FeeStructureCreate(name="B", amount=Decimal("120"), owner_id=owner.id))
    assert service.active_fee_structure() == second

    service.activate_fee_structure(first.id)
    assert store.active_configuration().active_fee_structure_id == first.id
    assert service.fees.resolve_fee() == Decimal("100")
    # the owner recorded earlier is kept
    assert store.active_configuration().owner_id == owner.id
