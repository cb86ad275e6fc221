import pytest

from src.qwac.certificate.schemas import CertificateRequest
from src.qwac.issuer.core import create_dev_issuer, load_issuer_data


@pytest.fixture(scope="session")
def issuer_files(tmp_path_factory):
    """生成一套测试用根 CA（O=Fake NCA, C=DE），返回 (私钥路径, 证书路径)。"""
    ca_dir = tmp_path_factory.mktemp("issuer")
    key_path = ca_dir / "MyRootCA.key"
    cert_path = ca_dir / "MyRootCA.pem"
    create_dev_issuer(
        key_path,
        cert_path,
        organization="Fake NCA",
        country="DE",
        common_name="Fake QWAC Root CA",
    )
    return key_path, cert_path


@pytest.fixture(scope="session")
def issuer_data(issuer_files):
    key_path, cert_path = issuer_files
    return load_issuer_data(key_path, cert_path)


@pytest.fixture
def make_request():
    """构造证书请求，默认值对应最小的合法请求。"""

    def _make(**overrides) -> CertificateRequest:
        data = {
            "authorizationNumber": "PSDDE-FAKENCA-87B2AC",
            "roles": ["AISP"],
            "organizationName": "Acme",
            "commonName": "acme.example",
            "validity": 30,
        }
        data.update(overrides)
        return CertificateRequest.model_validate(data)

    return _make
