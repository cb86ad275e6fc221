"""
测试 router.py 模块。
"""

from unittest.mock import patch

import pytest
from cryptography import x509
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.qwac.certificate import pem
from src.qwac.certificate.exceptions import CertificateBuildError
from src.qwac.certificate.router import router
from src.qwac.certificate.schemas import CertificateResponse

REQ_DATA = {
    "authorizationNumber": "PSDDE-FAKENCA-87B2AC",
    "roles": ["AISP"],
    "organizationName": "Acme",
    "validity": 30,
    "commonName": "acme.example",
}


@pytest.fixture
def client(issuer_data):
    # 创建一个 FastAPI 应用并包含我们的路由
    app = FastAPI()
    app.include_router(router)
    app.state.issuer_data = issuer_data
    return TestClient(app)


def test_generate_certificates_endpoint(client):
    response = client.post("/qwac/certificates", json=[REQ_DATA])

    assert response.status_code == 200
    body = response.json()
    assert len(body) == 1
    assert set(body[0]) == {"encodedCert", "privateKey"}
    cert = x509.load_pem_x509_certificate(pem.restore_pem(body[0]["encodedCert"]))
    assert cert.subject.get_attributes_for_oid(x509.oid.NameOID.COMMON_NAME)[0].value == "acme.example"


def test_generate_certificates_endpoint_validation_error(client):
    response = client.post("/qwac/certificates", json=[dict(REQ_DATA, validity=366)])
    assert response.status_code == 422  # Pydantic validation error


def test_generate_certificates_endpoint_long_common_name(client):
    with patch("src.qwac.certificate.services.generate_certificates") as mock_service:
        response = client.post("/qwac/certificates", json=[REQ_DATA, dict(REQ_DATA, commonName="a" * 65)])

    assert response.status_code == 422
    mock_service.assert_not_called()


def test_generate_certificates_endpoint_unexpected_error(client):
    with patch("src.qwac.certificate.services.generate_certificates", side_effect=KeyError("boom")):
        response = client.post("/qwac/certificates", json=[REQ_DATA])

    assert response.status_code == 500
    assert "内部服务器错误" in response.json()["detail"]


def test_generate_certificates_endpoint_generator_error(client):
    with patch(
        "src.qwac.certificate.services.generate_certificates",
        side_effect=CertificateBuildError("Could not create certificate"),
    ):
        response = client.post("/qwac/certificates", json=[REQ_DATA])

    assert response.status_code == 500
    assert "证书签发失败" in response.json()["detail"]


def test_generate_certificates_endpoint_mocked_service(client):
    with patch("src.qwac.certificate.services.generate_certificates") as mock_service:
        mock_service.return_value = [CertificateResponse(encoded_cert="cert", private_key="key")]
        response = client.post("/qwac/certificates", json=[REQ_DATA])

    assert response.status_code == 200
    assert response.json() == [{"encodedCert": "cert", "privateKey": "key"}]
    mock_service.assert_called_once()


def test_generate_certificate_results_endpoint(client):
    with patch(
        "src.qwac.certificate.core.issue_certificate",
        side_effect=[
            CertificateResponse(encoded_cert="cert", private_key="key"),
            CertificateBuildError("Could not create certificate"),
        ],
    ):
        response = client.post("/qwac/certificates/results", json=[REQ_DATA, REQ_DATA])

    assert response.status_code == 200
    body = response.json()
    assert body[0]["response"] == {"encodedCert": "cert", "privateKey": "key"}
    assert body[0]["error"] is None
    assert body[1]["response"] is None
    assert "Could not create certificate" in body[1]["error"]


def test_get_issuer_endpoint(client):
    response = client.get("/qwac/issuer")
    assert response.status_code == 200
    assert response.json()["ncaName"] == "Fake NCA"
    assert response.json()["ncaId"] == "DE-FAKENCA"


def test_issuer_not_loaded():
    app = FastAPI()
    app.include_router(router)
    response = TestClient(app).get("/qwac/issuer")
    assert response.status_code == 503
