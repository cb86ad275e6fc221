"""
QWAC 证书签发服务的 FastAPI 路由定义。
"""

from typing import List

from fastapi import APIRouter, HTTPException, Request

from src.qwac.issuer.core import IssuerData
from . import services
from .exceptions import CertificateGeneratorError
from .schemas import CertificateRequest, CertificateResponse, CertificateResult, IssuerInfo

router = APIRouter(prefix="/qwac", tags=["QWAC Certificates"])


def _issuer(request: Request) -> IssuerData:
    issuer = getattr(request.app.state, "issuer_data", None)
    if issuer is None:
        raise HTTPException(status_code=503, detail="签发者尚未加载")
    return issuer


def _workers(request: Request) -> int:
    return getattr(request.app.state, "workers", 1)


@router.post("/certificates", response_model=List[CertificateResponse])
def generate_certificates(reqs: List[CertificateRequest], request: Request) -> List[CertificateResponse]:
    """
    批量签发证书。任一请求失败则整个批次失败。
    """
    issuer = _issuer(request)
    try:
        return services.generate_certificates(reqs, issuer, workers=_workers(request))
    except CertificateGeneratorError as e:
        raise HTTPException(status_code=500, detail=f"证书签发失败: {str(e)}")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"内部服务器错误: {str(e)}")


@router.post("/certificates/results", response_model=List[CertificateResult])
def generate_certificate_results(reqs: List[CertificateRequest], request: Request) -> List[CertificateResult]:
    """
    批量签发证书，逐个返回每个请求的结果。
    """
    issuer = _issuer(request)
    try:
        return services.generate_certificate_results(reqs, issuer, workers=_workers(request))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"内部服务器错误: {str(e)}")


@router.get("/issuer", response_model=IssuerInfo)
async def get_issuer(request: Request) -> IssuerInfo:
    """
    返回签发者 DN 以及 QC 声明中使用的 NCA 名称与标识。
    """
    try:
        return services.issuer_info(_issuer(request))
    except CertificateGeneratorError as e:
        raise HTTPException(status_code=500, detail=str(e))
