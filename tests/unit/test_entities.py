import pytest

from checkin.domain.entities import (
    CorrelationResult,
    RegistrationFields,
    VerifierStatus,
    VisitorProfile,
)


def test_fields_require_email():
    with pytest.raises(ValueError):
        RegistrationFields(name="Ada", email="", company="", phone="")


def test_fields_from_dict_tolerates_missing_keys():
    f = RegistrationFields.from_dict({"email": "a@x.com", "name": None})
    assert f == RegistrationFields(name="", email="a@x.com", company="", phone="")
    assert RegistrationFields.from_dict(f.to_dict()) == f


def test_profile_requires_email():
    with pytest.raises(ValueError):
        VisitorProfile(email="  ")


def test_status_flags():
    assert VerifierStatus(state="completed").completed is True
    assert VerifierStatus(state="pending").completed is False
    assert CorrelationResult(state="waiting").completed is False
    assert CorrelationResult(state="completed", payload={}).completed is True
