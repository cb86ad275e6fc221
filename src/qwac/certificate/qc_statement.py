"""
PSD2 QC 声明（ETSI TS 119 495）的 ASN.1 结构与构建。

    QCStatement ::= SEQUENCE {
        statementId   OBJECT IDENTIFIER,        -- id-etsi-psd2-qcStatement
        statementInfo PSD2QcType }

    PSD2QcType ::= SEQUENCE {
        rolesOfPSP    RolesOfPSP,
        nCAName       NCAName,
        nCAId         NCAId }

    RolesOfPSP ::= SEQUENCE OF RoleOfPSP
    RoleOfPSP  ::= SEQUENCE { roleOfPspOid OBJECT IDENTIFIER, roleOfPspName UTF8String }
"""

from __future__ import annotations

from typing import Iterable

from pyasn1.codec.der import encoder as der_encoder
from pyasn1.type import char, namedtype, univ

from src.qwac.issuer.core import IssuerData
from .roles import roles_of_psp

ETSI_PSD2_QC_STATEMENT_OID = "0.4.0.19495.2"
# id-pe-qcStatements (RFC 3739)
QC_STATEMENTS_EXTENSION_OID = "1.3.6.1.5.5.7.1.3"
NCA_SHORT_NAME = "FAKENCA"


class RoleOfPsp(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType("roleOfPspOid", univ.ObjectIdentifier()),
        namedtype.NamedType("roleOfPspName", char.UTF8String()),
    )


class RolesOfPsp(univ.SequenceOf):
    componentType = RoleOfPsp()


class Psd2QcType(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType("rolesOfPSP", RolesOfPsp()),
        namedtype.NamedType("nCAName", char.UTF8String()),
        namedtype.NamedType("nCAId", char.UTF8String()),
    )


class QcStatement(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType("statementId", univ.ObjectIdentifier()),
        namedtype.NamedType("statementInfo", Psd2QcType()),
    )


class QcStatements(univ.SequenceOf):
    componentType = QcStatement()


def nca_name(issuer: IssuerData) -> str:
    """NCA 名称取签发者 DN 中 O 属性的值。"""
    return issuer.organization


def nca_id(issuer: IssuerData) -> str:
    """NCA 标识为签发者国家代码与固定简称以连字符拼接，如 DE-FAKENCA。"""
    return f"{issuer.country}-{NCA_SHORT_NAME}"


def build_roles_of_psp(requested: Iterable) -> RolesOfPsp:
    roles = RolesOfPsp()
    # 空序列也要成为可编码的值
    roles.clear()
    for entry in roles_of_psp(requested):
        role = RoleOfPsp()
        role["roleOfPspOid"] = univ.ObjectIdentifier(entry.oid)
        role["roleOfPspName"] = char.UTF8String(entry.name)
        roles.append(role)
    return roles


def build_qc_statement(requested_roles: Iterable, issuer: IssuerData) -> QcStatement:
    """
    构建 PSD2 QC 声明。
    :param requested_roles: 请求中的角色，按角色目录顺序排列，未知角色被忽略。
    :param issuer: 签发者，用于派生 NCA 名称与标识。
    :return: statementId 为 0.4.0.19495.2 的 QC 声明。
    """
    info = Psd2QcType()
    info["rolesOfPSP"] = build_roles_of_psp(requested_roles)
    info["nCAName"] = char.UTF8String(nca_name(issuer))
    info["nCAId"] = char.UTF8String(nca_id(issuer))

    statement = QcStatement()
    statement["statementId"] = univ.ObjectIdentifier(ETSI_PSD2_QC_STATEMENT_OID)
    statement["statementInfo"] = info
    return statement


def encode_qc_statements(statement: QcStatement) -> bytes:
    """把单个 QC 声明包装为 QCStatements 序列并进行 DER 编码，作为扩展值。"""
    statements = QcStatements()
    statements.append(statement)
    return der_encoder.encode(statements)
