"""
证书生成过程中的异常定义。

所有底层密码学库的错误都被包装为 CertificateGeneratorError 的子类，
保留可读的原因描述，并通过 ``raise ... from`` 保留原始异常。
"""

from __future__ import annotations


class CertificateGeneratorError(RuntimeError):
    """证书生成器的基础异常。"""

    def __init__(self, message: str, cause: BaseException | None = None):
        self.message = message
        self.cause = cause
        if cause is not None:
            super().__init__(f"{message}: {cause}")
        else:
            super().__init__(message)


class KeyGenerationError(CertificateGeneratorError):
    """密钥对生成失败。"""


class CertificateBuildError(CertificateGeneratorError):
    """证书结构组装或签名失败。"""


class ExportError(CertificateGeneratorError):
    """PEM 序列化失败。"""


class IssuerLoadError(CertificateGeneratorError):
    """签发者私钥或证书无法加载、或不满足签发要求。"""


class RequestValidationError(CertificateGeneratorError, ValueError):
    """
    证书请求格式错误：必填字段缺失或为空、角色数量越界、有效期越界等。
    同时继承 ValueError，路由层据此返回 400。
    """
