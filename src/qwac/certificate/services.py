"""
QWAC 证书签发的业务逻辑层。
此模块按顺序把核心流水线应用到一批请求上，并负责请求文件的读取与 PEM 文件的保存。

公开接口：
    - parse_certificate_requests: 把 JSON 对象列表校验为 CertificateRequest
    - read_certificate_requests: 从 JSON 文件读取请求
    - generate_certificates: 批量签发，任一请求失败即中止整个批次
    - generate_certificate_results: 批量签发，每个请求单独记录成功或失败
    - save_pem_files: 把响应写为 PEM 文件
    - generate_pem_files_certs: 读取 -> 签发 -> 保存 的完整流程
    - issuer_info: 签发者 DN 与 NCA 信息
"""

from __future__ import annotations

import json
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Iterable, List, Sequence

from loguru import logger
from pydantic import ValidationError

from src.qwac.issuer.core import IssuerData
from . import core
from .exceptions import CertificateGeneratorError, RequestValidationError
from .qc_statement import nca_id, nca_name
from .schemas import CertificateRequest, CertificateResponse, CertificateResult, IssuerInfo

CERT_FILE_SUFFIX = "-encodedCert.pem"
KEY_FILE_SUFFIX = "-privateKey.key"


def parse_certificate_requests(items: Iterable[Any]) -> List[CertificateRequest]:
    """
    把 JSON 解析得到的对象逐个校验为 CertificateRequest。
    :raises RequestValidationError: 任一请求格式错误（消息中包含其下标）。
    """
    requests: List[CertificateRequest] = []
    for index, item in enumerate(items):
        if isinstance(item, CertificateRequest):
            requests.append(item)
            continue
        try:
            requests.append(CertificateRequest.model_validate(item))
        except ValidationError as e:
            logger.error(f"第 {index} 个证书请求格式错误: {e}")
            raise RequestValidationError(f"Invalid certificate request at index {index}", e) from e
    return requests


def read_certificate_requests(tpp_json_file_path: str | Path) -> List[CertificateRequest]:
    """
    从 JSON 文件读取证书请求。文件内容为请求对象数组；单个对象视为只含一个请求的批次。
    :raises CertificateGeneratorError: 文件不存在或不是合法 JSON。
    :raises RequestValidationError: 请求格式错误。
    """
    path = Path(tpp_json_file_path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise CertificateGeneratorError(f"Json File not found or unable to read: {path}", e) from e

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise RequestValidationError(f"Json File must contain an array of certificate requests: {path}")
    return parse_certificate_requests(data)


def _run(requests: Sequence[CertificateRequest], fn, workers: int) -> list:
    if workers <= 1 or len(requests) <= 1:
        return [fn(req) for req in requests]
    # map 按原始顺序返回结果，第一个失败的请求在取结果时抛出
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(fn, requests))


def generate_certificates(
    requests: Sequence[CertificateRequest], issuer: IssuerData, workers: int = 1
) -> List[CertificateResponse]:
    """
    批量签发证书，返回与请求下标一一对应的响应列表。
    任一请求失败时异常直接向上传播，批次中止。
    :param requests: 已校验的证书请求。
    :param issuer: 签发者，整个批次共享且只读。
    :param workers: 并发线程数，1 表示顺序执行。
    """
    def _issue(req: CertificateRequest) -> CertificateResponse:
        try:
            return core.issue_certificate(req, issuer)
        except CertificateGeneratorError as e:
            logger.error(f"证书签发失败，批次中止: authorization_number={req.authorization_number}: {e}")
            raise

    responses = _run(requests, _issue, workers)
    logger.info(f"批量签发完成，共 {len(responses)} 张证书")
    return responses


def generate_certificate_results(
    requests: Sequence[CertificateRequest], issuer: IssuerData, workers: int = 1
) -> List[CertificateResult]:
    """
    批量签发证书，每个请求单独记录结果，单个请求失败不影响其余请求。
    """
    indexed = list(enumerate(requests))

    def _issue(item) -> CertificateResult:
        index, req = item
        try:
            response = core.issue_certificate(req, issuer)
        except CertificateGeneratorError as e:
            logger.warning(f"第 {index} 个请求签发失败: authorization_number={req.authorization_number}: {e}")
            return CertificateResult(index=index, authorization_number=req.authorization_number, error=str(e))
        return CertificateResult(index=index, authorization_number=req.authorization_number, response=response)

    results = _run(indexed, _issue, workers)
    failed = sum(1 for r in results if not r.ok)
    logger.info(f"批量签发完成: 成功 {len(results) - failed}，失败 {failed}")
    return results


def _write_file(path: Path, content: str, mode: int | None = None) -> None:
    with path.open("w", encoding="utf-8") as f:
        f.write(content)
    if mode is not None:
        os.chmod(path, mode)
    logger.info(f"PEM 文件已创建: {path}")


def save_pem_files(
    target_folder: str | Path,
    responses: Sequence[CertificateResponse],
    authorization_numbers: Sequence[str],
) -> List[Path]:
    """
    把每个响应保存到 <target_folder>/<授权号>/ 下：
    <授权号>-encodedCert.pem 与 <授权号>-privateKey.key（权限 0600）。
    :return: 写入的文件路径列表。
    :raises CertificateGeneratorError: 目录创建或文件写入失败。
    """
    if len(responses) != len(authorization_numbers):
        raise ValueError("responses and authorization numbers must have the same length")

    written: List[Path] = []
    for response, auth_number in zip(responses, authorization_numbers):
        # 授权号作为目录名，不允许跳出目标目录
        if Path(auth_number).name != auth_number or auth_number in (".", ".."):
            raise CertificateGeneratorError(f"Authorization number is not a valid folder name: {auth_number!r}")
        tpp_dir = Path(target_folder) / auth_number
        cert_path = tpp_dir / f"{auth_number}{CERT_FILE_SUFFIX}"
        key_path = tpp_dir / f"{auth_number}{KEY_FILE_SUFFIX}"
        try:
            tpp_dir.mkdir(parents=True, exist_ok=True)
            _write_file(cert_path, response.encoded_cert)
            _write_file(key_path, response.private_key, mode=0o600)
        except OSError as e:
            logger.error(f"保存 PEM 文件失败: {tpp_dir}: {e}")
            raise CertificateGeneratorError(f"Could not save PEM files to {tpp_dir}", e) from e
        written.extend([cert_path, key_path])
    return written


def generate_pem_files_certs(
    tpp_json_file_path: str | None,
    target_folder: str | None,
    issuer: IssuerData,
    workers: int = 1,
) -> List[Path]:
    """
    完整流程：校验参数 -> 读取请求文件 -> 批量签发 -> 保存 PEM 文件。
    参数为空时记录错误并返回空列表；其余错误向上传播。
    """
    if not tpp_json_file_path or not str(tpp_json_file_path).strip():
        logger.error("TPP JSON file path is null or empty.")
        return []
    if not target_folder or not str(target_folder).strip():
        logger.error("Target folder is null or empty.")
        return []

    requests = read_certificate_requests(tpp_json_file_path)
    if not requests:
        logger.error(f"TPP JSON 文件中没有证书请求: {tpp_json_file_path}")
        return []

    responses = generate_certificates(requests, issuer, workers=workers)
    written = save_pem_files(target_folder, responses, [r.authorization_number for r in requests])
    logger.info("Certificate generation completed successfully.")
    return written


def issuer_info(issuer: IssuerData) -> IssuerInfo:
    return IssuerInfo(
        subject=issuer.name.rfc4514_string(),
        nca_name=nca_name(issuer),
        nca_id=nca_id(issuer),
    )
