"""
PSD2 角色目录：PSP 角色枚举到 ETSI TS 119 495 角色 OID 与角色名称的静态映射。

映射在导入时构建一次，之后只读。字典的顺序即 QC 声明中角色的排列顺序。
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, List, Mapping

from .schemas import PspRole

# id-etsi-psd2-roles
ETSI_PSD2_ROLES_OID = "0.4.0.19495.1"


@dataclass(frozen=True)
class RoleOfPsp:
    """单个 PSP 角色的 OID 与名称。"""

    oid: str
    name: str


def _branch(arc: str, suffix: str) -> str:
    return f"{arc}.{suffix}"


PSP_AS = RoleOfPsp(_branch(ETSI_PSD2_ROLES_OID, "1"), "PSP_AS")
PSP_PI = RoleOfPsp(_branch(ETSI_PSD2_ROLES_OID, "2"), "PSP_PI")
PSP_AI = RoleOfPsp(_branch(ETSI_PSD2_ROLES_OID, "3"), "PSP_AI")
PSP_IC = RoleOfPsp(_branch(ETSI_PSD2_ROLES_OID, "4"), "PSP_IC")

ROLE_CATALOG: Mapping[PspRole, RoleOfPsp] = MappingProxyType(
    {
        PspRole.AISP: PSP_AI,
        PspRole.PISP: PSP_PI,
        PspRole.PIISP: PSP_IC,
        PspRole.ASPSP: PSP_AS,
    }
)


def roles_of_psp(requested: Iterable) -> List[RoleOfPsp]:
    """
    按目录顺序筛选出请求中包含的角色。
    :param requested: 请求中的角色（PspRole 或其字符串值）。
    :return: 目录顺序的角色列表；未知角色被忽略，重复角色只出现一次。
    """
    wanted = set()
    for role in requested:
        try:
            wanted.add(PspRole(role))
        except ValueError:
            continue
    return [entry for role, entry in ROLE_CATALOG.items() if role in wanted]
