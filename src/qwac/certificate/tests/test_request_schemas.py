"""
测试 schemas.py 模块。
"""

import pytest
from pydantic import ValidationError

from src.qwac.certificate.schemas import (
    CertificateRequest,
    CertificateResponse,
    CertificateResult,
    MAX_COMMON_NAME_LENGTH,
    PspRole,
)

VALID = {
    "authorizationNumber": "PSDDE-FAKENCA-87B2AC",
    "roles": ["PISP", "AISP"],
    "organizationName": "Acme",
    "organizationUnit": "Payments",
    "domainComponent": "example",
    "localityName": "Berlin",
    "stateOrProvinceName": "Berlin",
    "countryCode": "de",
    "validity": 30,
    "commonName": "acme.example",
    "ocspCheckNeeded": True,
}


def _with(**overrides):
    data = dict(VALID)
    data.update(overrides)
    return data


def test_certificate_request_valid():
    req = CertificateRequest.model_validate(VALID)
    assert req.authorization_number == "PSDDE-FAKENCA-87B2AC"
    assert req.roles == [PspRole.PISP, PspRole.AISP]
    assert req.country_code == "DE"
    assert req.ocsp_check_needed is True


def test_certificate_request_defaults():
    data = {k: VALID[k] for k in ("authorizationNumber", "roles", "organizationName", "validity", "commonName")}
    req = CertificateRequest.model_validate(data)
    assert req.ocsp_check_needed is False
    assert req.organization_unit is None
    assert req.country_code is None


def test_certificate_request_by_field_name():
    req = CertificateRequest(
        authorization_number="A1",
        roles=[PspRole.ASPSP],
        organization_name="Bank",
        validity=1,
        common_name="bank.example",
    )
    assert req.model_dump(by_alias=True)["authorizationNumber"] == "A1"


def test_certificate_request_is_frozen():
    req = CertificateRequest.model_validate(VALID)
    with pytest.raises(ValidationError):
        req.validity = 10


@pytest.mark.parametrize("validity", [-365, 365, 0])
def test_validity_bounds_accepted(validity):
    assert CertificateRequest.model_validate(_with(validity=validity)).validity == validity


@pytest.mark.parametrize("validity", [-366, 366])
def test_validity_bounds_rejected(validity):
    with pytest.raises(ValidationError):
        CertificateRequest.model_validate(_with(validity=validity))


@pytest.mark.parametrize("roles", [[], ["PISP", "AISP", "PIISP", "ASPSP"]])
def test_role_count_rejected(roles):
    with pytest.raises(ValidationError):
        CertificateRequest.model_validate(_with(roles=roles))


@pytest.mark.parametrize("roles", [["PISP"], ["PISP", "AISP", "PIISP"]])
def test_role_count_accepted(roles):
    assert len(CertificateRequest.model_validate(_with(roles=roles)).roles) == len(roles)


def test_unknown_role_rejected():
    with pytest.raises(ValidationError):
        CertificateRequest.model_validate(_with(roles=["XSP"]))


@pytest.mark.parametrize("field", ["authorizationNumber", "organizationName", "commonName", "validity", "roles"])
def test_missing_required_field(field):
    data = _with()
    data.pop(field)
    with pytest.raises(ValidationError):
        CertificateRequest.model_validate(data)


@pytest.mark.parametrize("field", ["authorizationNumber", "organizationName", "commonName"])
def test_blank_required_field(field):
    with pytest.raises(ValidationError):
        CertificateRequest.model_validate(_with(**{field: "  "}))


def test_common_name_max_length_accepted():
    name = "a" * MAX_COMMON_NAME_LENGTH
    assert CertificateRequest.model_validate(_with(commonName=name)).common_name == name


def test_common_name_too_long_rejected():
    with pytest.raises(ValidationError):
        CertificateRequest.model_validate(_with(commonName="a" * (MAX_COMMON_NAME_LENGTH + 1)))


@pytest.mark.parametrize("code", ["DEU", "D", "1A"])
def test_invalid_country_code(code):
    with pytest.raises(ValidationError):
        CertificateRequest.model_validate(_with(countryCode=code))


def test_blank_country_code_allowed():
    assert CertificateRequest.model_validate(_with(countryCode="")).country_code == ""


def test_certificate_response_aliases():
    resp = CertificateResponse(encoded_cert="cert", private_key="key")
    assert resp.model_dump(by_alias=True) == {"encodedCert": "cert", "privateKey": "key"}


def test_certificate_result_ok():
    assert CertificateResult(index=0, response=CertificateResponse(encoded_cert="c", private_key="k")).ok
    assert not CertificateResult(index=1, error="boom").ok
