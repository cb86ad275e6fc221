"""
命令行入口：从 TPP JSON 文件批量签发 QWAC 证书并保存为 PEM 文件。

用法：
    qwac-generator <path/to/tpp.json> [--target_folder <target_folder>] [--workers N]
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from loguru import logger

from src.qwac.certificate.exceptions import CertificateGeneratorError
from src.qwac.certificate.services import generate_pem_files_certs
from src.qwac.config import config
from src.qwac.issuer.core import load_or_create_issuer_data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qwac-generator",
        description="Batch-issue PSD2 QWAC certificates from a TPP JSON file.",
    )
    parser.add_argument("tpp_json_file_path", help="path to the JSON file holding the certificate requests")
    parser.add_argument(
        "--target_folder",
        default=config.target_folder,
        help=f"folder to write the PEM files to (default: {config.target_folder})",
    )
    parser.add_argument("--workers", type=int, default=config.workers, help="number of worker threads")
    return parser


def setup_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(config.log_level)

    try:
        issuer = load_or_create_issuer_data(config)
        written = generate_pem_files_certs(
            args.tpp_json_file_path,
            args.target_folder,
            issuer,
            workers=max(1, args.workers),
        )
    except CertificateGeneratorError as e:
        logger.error(f"Error during certificate generation: {e}")
        return 1

    if not written:
        logger.error("Error during certificate generation")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
