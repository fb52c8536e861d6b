"""アサーション（構造的に許可されたパーミッションの拒否フック）"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable

from .exceptions import RbacError, RbacErrorCodes
from .role import RoleInterface

if TYPE_CHECKING:
    from .rbac import Rbac


@runtime_checkable
class AssertionInterface(Protocol):
    """アサーションプロトコル。

    Rbac.is_granted はロール階層でパーミッションが許可された場合にのみ
    assert_ を呼び出し、その結果を最終判定とする。
    """

    def assert_(self, rbac: Rbac, role: RoleInterface, permission: str) -> bool: ...


AssertionCallback = Callable[["Rbac", RoleInterface, str], bool]


class CallbackAssertion:
    """任意の callable をアサーションとして扱うアダプター。"""

    def __init__(self, callback: AssertionCallback) -> None:
        if not callable(callback):
            raise RbacError(
                code=RbacErrorCodes.INVALID_ASSERTION,
                message=f"Assertion callback must be callable, got {type(callback).__name__}",
            )
        self._callback = callback

    def assert_(self, rbac: Rbac, role: RoleInterface, permission: str) -> bool:
        return bool(self._callback(rbac, role, permission))


class AssertionSet:
    """複数のアサーションを AND / OR で合成するアサーション。

    AND モードは最初に False を返したアサーションで、OR モードは最初に
    True を返したアサーションで評価を打ち切る。
    """

    MODE_AND: str = "AND"
    MODE_OR: str = "OR"

    def __init__(
        self,
        assertions: Iterable[AssertionInterface | AssertionCallback] | None = None,
        mode: str = MODE_AND,
    ) -> None:
        self._assertions: list[AssertionInterface] = []
        self._mode = self.MODE_AND
        self.set_mode(mode)
        if assertions is not None:
            self.add_assertions(assertions)

    def add_assertion(self, assertion: AssertionInterface | AssertionCallback) -> None:
        """アサーションを追加する。callable は CallbackAssertion に包む。"""
        if isinstance(assertion, AssertionInterface):
            self._assertions.append(assertion)
        elif callable(assertion):
            self._assertions.append(CallbackAssertion(assertion))
        else:
            raise RbacError(
                code=RbacErrorCodes.INVALID_ASSERTION,
                message=(
                    "Assertion must be callable or implement assert_(), "
                    f"got {type(assertion).__name__}"
                ),
            )

    def add_assertions(
        self, assertions: Iterable[AssertionInterface | AssertionCallback]
    ) -> None:
        for assertion in assertions:
            self.add_assertion(assertion)

    def set_mode(self, mode: str) -> None:
        """評価モードを設定する。

        Raises:
            RbacError: MODE_AND / MODE_OR 以外が指定された場合
        """
        if mode not in (self.MODE_AND, self.MODE_OR):
            raise RbacError(
                code=RbacErrorCodes.INVALID_ASSERTION_MODE,
                message=f"Assertion mode must be 'AND' or 'OR', got '{mode}'",
            )
        self._mode = mode

    def get_mode(self) -> str:
        return self._mode

    def __len__(self) -> int:
        return len(self._assertions)

    def assert_(self, rbac: Rbac, role: RoleInterface, permission: str) -> bool:
        if self._mode == self.MODE_AND:
            return all(a.assert_(rbac, role, permission) for a in self._assertions)
        return any(a.assert_(rbac, role, permission) for a in self._assertions)
