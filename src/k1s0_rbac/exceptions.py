"""rbac ライブラリの例外型定義"""

from __future__ import annotations


class RbacError(Exception):
    """rbac ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class RbacErrorCodes:
    """RbacError のエラーコード定数。"""

    INVALID_ROLE: str = "INVALID_ROLE"
    UNKNOWN_ROLE: str = "UNKNOWN_ROLE"
    CIRCULAR_REFERENCE: str = "CIRCULAR_REFERENCE"
    INVALID_ASSERTION: str = "INVALID_ASSERTION"
    INVALID_ASSERTION_MODE: str = "INVALID_ASSERTION_MODE"
    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
    VALIDATION: str = "VALIDATION_ERROR"


class InvalidRoleError(RbacError, ValueError):
    """ロールとして解釈できない値が渡された。"""

    def __init__(self, message: str, code: str = RbacErrorCodes.INVALID_ROLE) -> None:
        super().__init__(code, message)


class UnknownRoleError(InvalidRoleError, LookupError):
    """レジストリに存在しないロール名が参照された。

    ロール引数が解決できないという点で InvalidRoleError の一種として扱う。
    """

    def __init__(self, name: str) -> None:
        super().__init__(
            f"No role with name '{name}' could be found",
            code=RbacErrorCodes.UNKNOWN_ROLE,
        )
        self.name = name


class CircularReferenceError(RbacError, ValueError):
    """ロール階層に循環参照を作ろうとした。"""

    def __init__(self, message: str) -> None:
        super().__init__(RbacErrorCodes.CIRCULAR_REFERENCE, message)
