"""로깅 초기화

- setup_logging(): config/logging.yml을 dictConfig로 불러오고, 없으면 기본 로깅으로 대체
"""

import logging
import logging.config
import os

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

DEFAULT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def get_project_root() -> str:
    """프로젝트 루트의 절대 경로 (intent_router 패키지의 상위 디렉터리)"""
    return os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def setup_logging(
    level: str = "INFO",
    config_rel_path: str = os.path.join("config", "logging.yml"),
) -> None:
    """로깅 설정을 초기화합니다.

    - 프로젝트 루트 기준 `config/logging.yml` 파일이 있으면 이를 로드해 로깅을 구성합니다.
    - 없거나 형식이 잘못되었으면 basicConfig로 대체합니다.

    Args:
        level: 폴백 시 사용할 로그 레벨
        config_rel_path: 프로젝트 루트 기준 로깅 YAML 파일의 상대 경로
    """
    cfg_path = os.path.join(get_project_root(), config_rel_path)
    error = None
    if os.path.exists(cfg_path):
        try:
            yaml = YAML(typ="safe")
            with open(cfg_path, "r", encoding="utf-8") as f:
                data = yaml.load(f) or {}
            if isinstance(data, dict) and data:
                logging.config.dictConfig(data)
                return
        except (OSError, YAMLError, ValueError, TypeError) as e:
            error = e

    logging.basicConfig(level=level.upper(), format=DEFAULT_FORMAT)
    if error is not None:
        logging.getLogger(__name__).warning("Invalid logging config %s: %s", cfg_path, error)
