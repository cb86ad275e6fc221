"""
QWAC 证书签发的核心逻辑实现。
包括生成主体密钥与 DN、计算有效期与序列号、构建 QC 声明扩展并用 CA 私钥签名。
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from loguru import logger

from src.qwac.issuer.core import IssuerData
from . import pem
from .exceptions import CertificateBuildError, CertificateGeneratorError, KeyGenerationError
from .qc_statement import QC_STATEMENTS_EXTENSION_OID, QcStatement, build_qc_statement, encode_qc_statements
from .schemas import CertificateRequest, CertificateResponse

KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537


@dataclass(frozen=True)
class SubjectData:
    """单个请求生成的主体数据，只在签名时使用。"""

    private_key: rsa.RSAPrivateKey
    name: x509.Name
    serial_number: int
    start_date: datetime
    end_date: datetime
    ocsp_check_needed: bool = False

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        return self.private_key.public_key()


def _subject_attributes(req: CertificateRequest) -> List[Tuple[x509.ObjectIdentifier, str | None]]:
    # 顺序决定 DN 的渲染结果
    return [
        (NameOID.ORGANIZATION_NAME, req.organization_name),
        (NameOID.COMMON_NAME, req.common_name),
        (NameOID.DOMAIN_COMPONENT, req.domain_component),
        (NameOID.ORGANIZATIONAL_UNIT_NAME, req.organization_unit),
        (NameOID.COUNTRY_NAME, req.country_code),
        (NameOID.STATE_OR_PROVINCE_NAME, req.state_or_province_name),
        (NameOID.LOCALITY_NAME, req.locality_name),
        (NameOID.ORGANIZATION_IDENTIFIER, req.authorization_number),
    ]


def build_subject_name(req: CertificateRequest) -> x509.Name:
    """
    按固定顺序组装主体 DN，值为 None 或空白的字段不生成 RDN。
    :param req: 证书请求。
    :return: 每个属性各占一个 RDN 的 x509.Name。
    :raises CertificateBuildError: 属性值不合法。
    """
    try:
        return x509.Name(
            [
                x509.NameAttribute(oid, value)
                for oid, value in _subject_attributes(req)
                if value is not None and value.strip()
            ]
        )
    except (ValueError, TypeError) as e:
        raise CertificateBuildError("Could not build subject name", e) from e


def compute_validity(validity_days: int, now: datetime | None = None) -> Tuple[datetime, datetime]:
    """
    计算有效期。
    开始时间为当前时刻（UTC，精确到秒）；结束时间为当天日期加 validity_days 天的 UTC 零点。
    validity_days 为负时结束时间早于开始时间，这里不做额外检查。
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc).replace(microsecond=0)
    end_day: date = now.date() + timedelta(days=validity_days)
    return now, datetime.combine(end_day, time.min, tzinfo=timezone.utc)


def generate_key_pair(key_size: int = KEY_SIZE) -> rsa.RSAPrivateKey:
    """
    生成主体 RSA 密钥对（由操作系统的 CSPRNG 提供随机数）。
    :raises KeyGenerationError: 密钥生成失败，不重试。
    """
    try:
        return rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=key_size)
    except (ValueError, TypeError) as e:
        raise KeyGenerationError("Could not generate key pair", e) from e


def generate_serial_number() -> int:
    """
    由 CSPRNG 生成的正整数序列号。
    每个请求独立抽取，不做全局唯一性检查。
    """
    return x509.random_serial_number()


def generate_subject_data(req: CertificateRequest, now: datetime | None = None) -> SubjectData:
    """把一个证书请求转换为主体数据：密钥对、DN、序列号和有效期。"""
    name = build_subject_name(req)
    start_date, end_date = compute_validity(req.validity, now)
    private_key = generate_key_pair()
    return SubjectData(
        private_key=private_key,
        name=name,
        serial_number=generate_serial_number(),
        start_date=start_date,
        end_date=end_date,
        ocsp_check_needed=req.ocsp_check_needed,
    )


def _naive_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def build_certificate(
    subject: SubjectData, statement: QcStatement, issuer: IssuerData
) -> x509.Certificate:
    """
    组装 X.509v3 证书并用签发者私钥以 SHA-256 with RSA 签名。
    QC 声明扩展总是添加（非关键）；ocsp_check_needed 为 False 时添加 OCSP no-check 扩展（非关键）。
    :raises CertificateBuildError: 组装或签名失败。
    """
    try:
        extensions = [
            x509.Extension(
                x509.ObjectIdentifier(QC_STATEMENTS_EXTENSION_OID),
                False,
                x509.UnrecognizedExtension(
                    x509.ObjectIdentifier(QC_STATEMENTS_EXTENSION_OID),
                    encode_qc_statements(statement),
                ),
            )
        ]
        if not subject.ocsp_check_needed:
            extensions.append(
                x509.Extension(x509.OCSPNoCheck.oid, False, x509.OCSPNoCheck())
            )

        # 构造函数不校验 not_valid_before / not_valid_after 的先后，负有效期依赖这一点
        builder = x509.CertificateBuilder(
            issuer_name=issuer.name,
            subject_name=subject.name,
            public_key=subject.public_key,
            serial_number=subject.serial_number,
            not_valid_before=_naive_utc(subject.start_date),
            not_valid_after=_naive_utc(subject.end_date),
            extensions=extensions,
        )
        return builder.sign(private_key=issuer.private_key, algorithm=hashes.SHA256())
    except CertificateGeneratorError:
        raise
    except Exception as e:
        logger.error(f"证书签名失败 (serial={subject.serial_number}): {e}")
        raise CertificateBuildError("Could not create certificate", e) from e


def issue_certificate(req: CertificateRequest, issuer: IssuerData) -> CertificateResponse:
    """
    单个请求的签发流水线：主体数据 -> QC 声明 -> 签名 -> PEM 导出。
    :param req: 证书请求。
    :param issuer: 签发者，只读。
    :return: 证书与私钥的 PEM 文本。
    """
    subject = generate_subject_data(req)
    statement = build_qc_statement(req.roles, issuer)
    cert = build_certificate(subject, statement, issuer)
    logger.debug(
        f"证书已签发: authorization_number={req.authorization_number}, "
        f"serial=0x{cert.serial_number:x}, not_after={subject.end_date.isoformat()}"
    )
    return CertificateResponse(
        encoded_cert=pem.export_to_string(cert),
        private_key=pem.export_to_string(subject.private_key),
    )
