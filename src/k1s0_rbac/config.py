"""RBAC エンジン設定"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from .exceptions import RbacError, RbacErrorCodes


class RbacConfig(BaseModel):
    """RBAC エンジン設定。"""

    # 未登録の親ロール名を参照したときに自動作成するか
    create_missing_roles: bool = False


def load_config(path: Path) -> RbacConfig:
    """YAML 設定ファイルから RbacConfig を読み込む。

    アプリケーション全体の設定ファイルを渡せるよう、トップレベルに rbac
    セクションがあればそれだけを使い、なければ文書全体を RBAC 設定とみなす。
    空ファイルや空セクションは既定値になる。

    Raises:
        RbacError: 読み込み (READ_FILE_ERROR)、YAML 解析 (PARSE_YAML_ERROR)、
                   検証 (VALIDATION_ERROR) のいずれかに失敗した場合
    """
    try:
        with path.open(encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise RbacError(
            code=RbacErrorCodes.READ_FILE,
            message=f"Failed to read RBAC config: {path}",
            cause=e,
        ) from e
    except yaml.YAMLError as e:
        raise RbacError(
            code=RbacErrorCodes.PARSE_YAML,
            message=f"RBAC config is not valid YAML: {path}",
            cause=e,
        ) from e

    section = document.get("rbac", document) if isinstance(document, dict) else document
    try:
        return RbacConfig.model_validate(section or {})
    except ValidationError as e:
        raise RbacError(
            code=RbacErrorCodes.VALIDATION,
            message=f"Invalid RBAC config in {path}: {e}",
            cause=e,
        ) from e
