"""
QWAC 证书签发的数据模型定义。

公开接口：
    - PspRole: PSD2 支付服务提供方角色枚举
    - CertificateRequest: 单个证书请求（JSON 字段为驼峰命名）
    - CertificateResponse: 单个证书响应（PEM 文本，已去除换行）
    - CertificateResult: 隔离模式下单个请求的处理结果
    - IssuerInfo: 签发者信息（供 HTTP 接口展示）
"""

from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MIN_VALIDITY_DAYS = -365
MAX_VALIDITY_DAYS = 365
MIN_ROLES = 1
MAX_ROLES = 3
# RFC 5280 ub-common-name
MAX_COMMON_NAME_LENGTH = 64


class PspRole(str, Enum):
    """PSD2 支付服务提供方角色。"""

    PISP = "PISP"  # 支付发起服务提供方
    AISP = "AISP"  # 账户信息服务提供方
    PIISP = "PIISP"  # 发卡类支付工具服务提供方
    ASPSP = "ASPSP"  # 账户服务支付服务提供方（银行）


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class CertificateRequest(_CamelModel):
    """
    证书请求。构造后不可变。
    必填的字符串字段不允许为空白；可选字段为空白时在主体 DN 中被忽略。
    """

    authorization_number: str
    roles: List[PspRole] = Field(min_length=MIN_ROLES, max_length=MAX_ROLES)
    organization_name: str
    organization_unit: str | None = None
    domain_component: str | None = None
    locality_name: str | None = None
    state_or_province_name: str | None = None
    country_code: str | None = None
    validity: int = Field(ge=MIN_VALIDITY_DAYS, le=MAX_VALIDITY_DAYS)
    common_name: str = Field(max_length=MAX_COMMON_NAME_LENGTH)
    ocsp_check_needed: bool = False

    @field_validator("authorization_number", "organization_name", "common_name")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("country_code")
    @classmethod
    def check_country_code(cls, value: str | None) -> str | None:
        """国家代码非空时必须是两位字母（ISO 3166）。"""
        if value is None or not value.strip():
            return value
        code = value.strip()
        if len(code) != 2 or not code.isalpha():
            raise ValueError("country code must be a two letter ISO 3166 code")
        return code.upper()


class CertificateResponse(_CamelModel):
    """单个请求的签发结果：证书与私钥的 PEM 文本（已去除换行）。"""

    encoded_cert: str
    private_key: str


class CertificateResult(_CamelModel):
    """
    隔离模式下单个请求的处理结果。
    成功时 response 不为空，失败时 error 记录原因。
    """

    index: int
    authorization_number: str | None = None
    response: CertificateResponse | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class IssuerInfo(_CamelModel):
    """签发者 DN 以及由其派生的 NCA 名称与标识。"""

    subject: str
    nca_name: str
    nca_id: str
