"""
PEM 导出工具：把证书、CSR、私钥或公钥序列化为 PEM 文本或字节。
"""

from __future__ import annotations

import re
import textwrap

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed448, ed25519, rsa

from .exceptions import ExportError

# 传统 OpenSSL 格式只支持这几类私钥，其余使用 PKCS8
_TRADITIONAL_PRIVATE_KEYS = (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, dsa.DSAPrivateKey)
_PKCS8_PRIVATE_KEYS = (ed25519.Ed25519PrivateKey, ed448.Ed448PrivateKey)
_PUBLIC_KEYS = (
    rsa.RSAPublicKey,
    ec.EllipticCurvePublicKey,
    dsa.DSAPublicKey,
    ed25519.Ed25519PublicKey,
    ed448.Ed448PublicKey,
)

_PEM_BLOCK = re.compile(
    r"-----BEGIN (?P<label>[A-Z0-9 ]+)-----(?P<body>[A-Za-z0-9+/=\s]*?)-----END (?P=label)-----"
)


def export_to_bytes(obj: object) -> bytes:
    """
    把对象序列化为 PEM 字节。
    RSA 私钥输出为 "RSA PRIVATE KEY"（传统 OpenSSL 格式），不加密。
    :raises ExportError: 不支持的对象类型或序列化失败。
    """
    try:
        if isinstance(obj, (x509.Certificate, x509.CertificateSigningRequest)):
            return obj.public_bytes(serialization.Encoding.PEM)
        if isinstance(obj, _TRADITIONAL_PRIVATE_KEYS + _PKCS8_PRIVATE_KEYS):
            fmt = (
                serialization.PrivateFormat.TraditionalOpenSSL
                if isinstance(obj, _TRADITIONAL_PRIVATE_KEYS)
                else serialization.PrivateFormat.PKCS8
            )
            return obj.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=fmt,
                encryption_algorithm=serialization.NoEncryption(),
            )
        if isinstance(obj, _PUBLIC_KEYS):
            return obj.public_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PublicFormat.SubjectPublicKeyInfo,
            )
    except (ValueError, TypeError) as e:
        raise ExportError("Could not export certificate to bytes", e) from e
    raise ExportError(f"Could not export object of type {type(obj).__name__}")


def export_to_string(obj: object) -> str:
    """把对象序列化为 PEM 文本，并去除换行符以便单行存储。"""
    try:
        text = export_to_bytes(obj).decode("ascii")
    except UnicodeDecodeError as e:
        raise ExportError("Could not export certificate", e) from e
    return text.replace("\n", "")


def restore_pem(text: str) -> bytes:
    """
    把去除了换行的单行 PEM 文本恢复为标准的 64 列 PEM 字节，便于再次解析。
    已经是多行的 PEM 也可以处理。
    :raises ValueError: 文本中没有 PEM 块。
    """
    blocks = []
    for match in _PEM_BLOCK.finditer(text):
        label = match.group("label")
        body = "".join(match.group("body").split())
        lines = [f"-----BEGIN {label}-----", *textwrap.wrap(body, 64), f"-----END {label}-----"]
        blocks.append("\n".join(lines) + "\n")
    if not blocks:
        raise ValueError("no PEM block found")
    return "".join(blocks).encode("ascii")
