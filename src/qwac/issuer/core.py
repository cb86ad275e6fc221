"""
签发者（根 CA）上下文。

负责从 PEM 文件加载 CA 私钥与证书，并校验为进程内只读的 IssuerData。
IssuerData 在启动时加载一次，通过参数传递给需要它的各个组件。

公开接口：
    - IssuerData: 签发者 DN 与私钥
    - issuer_data_from: 由已解析的证书与私钥构建并校验 IssuerData
    - load_issuer_data: 从 PEM 文件加载 IssuerData
    - create_dev_issuer: 生成开发用自签根 CA 并写入 PEM 文件
    - load_or_create_issuer_data: 按配置加载，开发模式下文件缺失时自动生成
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    PrivateFormat,
    NoEncryption,
)
from cryptography.x509.oid import NameOID
from loguru import logger

from src.qwac.certificate.exceptions import IssuerLoadError
from src.qwac.config import Config, config as default_config

DEV_ISSUER_VALIDITY_DAYS = 3650


@dataclass(frozen=True)
class IssuerData:
    """签发者的 DN 与私钥，整个批次共享且只读。"""

    name: x509.Name
    private_key: rsa.RSAPrivateKey
    certificate: x509.Certificate | None = None

    def _first_value(self, oid: x509.ObjectIdentifier) -> str:
        attrs = self.name.get_attributes_for_oid(oid)
        if not attrs:
            raise IssuerLoadError(f"签发者 DN 缺少 {oid.dotted_string} 属性: {self.name.rfc4514_string()}")
        return str(attrs[0].value)

    @property
    def organization(self) -> str:
        return self._first_value(NameOID.ORGANIZATION_NAME)

    @property
    def country(self) -> str:
        return self._first_value(NameOID.COUNTRY_NAME)


def issuer_data_from(
    certificate: x509.Certificate, private_key: object
) -> IssuerData:
    """
    由 CA 证书与私钥构建 IssuerData，并校验其可用于签发。
    :param certificate: CA 证书，其主体 DN 作为签发者 DN。
    :param private_key: CA 私钥，必须是 RSA 私钥且与证书公钥匹配。
    :return: 校验通过的 IssuerData。
    :raises IssuerLoadError: 私钥类型不符、与证书不匹配或 DN 缺少 O / C 属性。
    """
    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise IssuerLoadError(f"签发者私钥必须是 RSA 私钥，实际为 {type(private_key).__name__}")

    cert_public_key = certificate.public_key()
    if not isinstance(cert_public_key, rsa.RSAPublicKey) or (
        cert_public_key.public_numbers() != private_key.public_key().public_numbers()
    ):
        raise IssuerLoadError("签发者私钥与证书公钥不匹配")

    issuer = IssuerData(name=certificate.subject, private_key=private_key, certificate=certificate)
    # NCA 名称与标识由 O / C 派生，缺失时在加载阶段失败
    _ = (issuer.organization, issuer.country)
    return issuer


def load_issuer_data(private_key_path: str | Path, certificate_path: str | Path) -> IssuerData:
    """
    从 PEM 文件加载签发者私钥与证书。
    :param private_key_path: CA 私钥 PEM 文件路径（未加密）。
    :param certificate_path: CA 证书 PEM 文件路径。
    :return: IssuerData。
    :raises IssuerLoadError: 文件无法读取或解析。
    """
    try:
        with open(private_key_path, "rb") as f:
            private_key = serialization.load_pem_private_key(f.read(), password=None)
    except (OSError, ValueError, TypeError) as e:
        logger.error(f"加载签发者私钥失败: {private_key_path}: {e}")
        raise IssuerLoadError("Could not load private key", e) from e

    try:
        with open(certificate_path, "rb") as f:
            certificate = x509.load_pem_x509_certificate(f.read())
    except (OSError, ValueError) as e:
        logger.error(f"加载签发者证书失败: {certificate_path}: {e}")
        raise IssuerLoadError("Could not read issuer certificate", e) from e

    issuer = issuer_data_from(certificate, private_key)
    logger.info(f"签发者加载成功: {issuer.name.rfc4514_string()}")
    return issuer


def _ensure_parent(path: Path) -> None:
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)


def create_dev_issuer(
    private_key_path: str | Path,
    certificate_path: str | Path,
    organization: str,
    country: str,
    common_name: str,
) -> Tuple[rsa.RSAPrivateKey, x509.Certificate]:
    """
    生成开发用自签根 CA，并把私钥（传统 OpenSSL 格式）与证书写入 PEM 文件。
    返回 (ca_private_key, ca_certificate)。
    """
    key_path = Path(private_key_path)
    cert_path = Path(certificate_path)

    ca_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    subject = x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, country),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )
    now = datetime.now(timezone.utc)
    ca_cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(ca_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=1))
        .not_valid_after(now + timedelta(days=DEV_ISSUER_VALIDITY_DAYS))
        .add_extension(x509.BasicConstraints(ca=True, path_length=0), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                key_encipherment=False,
                key_cert_sign=True,
                crl_sign=True,
                content_commitment=False,
                data_encipherment=False,
                key_agreement=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .sign(private_key=ca_key, algorithm=hashes.SHA256())
    )

    _ensure_parent(key_path)
    _ensure_parent(cert_path)
    key_path.write_bytes(
        ca_key.private_bytes(
            encoding=Encoding.PEM,
            format=PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=NoEncryption(),
        )
    )
    os.chmod(key_path, 0o600)
    cert_path.write_bytes(ca_cert.public_bytes(Encoding.PEM))
    logger.warning(f"已生成开发用根 CA（仅用于测试环境）: {cert_path}")
    return ca_key, ca_cert


def load_or_create_issuer_data(cfg: Config | None = None) -> IssuerData:
    """
    按配置加载签发者。
    issuer_auto_create 为真且私钥或证书文件缺失时，先生成开发用根 CA。
    """
    cfg = cfg or default_config
    key_path = Path(cfg.issuer_private_key_path)
    cert_path = Path(cfg.issuer_certificate_path)

    if cfg.issuer_auto_create and not (key_path.exists() and cert_path.exists()):
        create_dev_issuer(
            key_path,
            cert_path,
            organization=cfg.dev_issuer_organization,
            country=cfg.dev_issuer_country,
            common_name=cfg.dev_issuer_common_name,
        )

    return load_issuer_data(key_path, cert_path)
