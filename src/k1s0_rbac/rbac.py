"""Rbac レジストリと認可判定"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Union

from .assertion import AssertionCallback, AssertionInterface
from .config import RbacConfig
from .exceptions import (
    CircularReferenceError,
    InvalidRoleError,
    RbacError,
    RbacErrorCodes,
    UnknownRoleError,
)
from .role import Role, RoleInterface, is_reachable

logger = logging.getLogger(__name__)

RoleLike = Union[RoleInterface, str]


def _describe(value: object) -> str:
    return type(value).__name__


class Rbac:
    """ロールのレジストリと認可判定エンジン。

    スレッドセーフではない。複数スレッドから共有する場合、add_role などの
    更新と is_granted の呼び出しを呼び出し側で排他すること。
    """

    def __init__(self, create_missing_roles: bool = False) -> None:
        self._roles: dict[str, RoleInterface] = {}
        self._create_missing_roles = create_missing_roles

    @classmethod
    def from_config(cls, config: RbacConfig) -> Rbac:
        """RbacConfig から Rbac を生成する。"""
        return cls(create_missing_roles=config.create_missing_roles)

    def set_create_missing_roles(self, create_missing_roles: bool) -> None:
        """未登録の親ロールを自動作成するかを設定する。以降の add_role にのみ影響する。"""
        self._create_missing_roles = create_missing_roles

    def get_create_missing_roles(self) -> bool:
        return self._create_missing_roles

    def add_role(
        self,
        role: RoleLike,
        parents: RoleLike | Sequence[RoleLike] | None = None,
    ) -> None:
        """ロールを登録し、指定された親ロールの子としてリンクする。

        Args:
            role: ロール名またはロールオブジェクト。名前の場合は登録済みの
                  同名ロールを再利用し、なければ新しい Role を作成する。
            parents: 親ロール（名前・オブジェクト）またはそのリスト

        Raises:
            InvalidRoleError: role または parents にロール以外の値が含まれる場合
            UnknownRoleError: 未登録の親ロールを参照し、create_missing_roles が False の場合
            CircularReferenceError: リンクによりロール階層が循環する場合

        エラー時はレジストリもロールも変更されない。
        """
        if isinstance(role, str):
            target = self._roles.get(role)
            if target is None:
                target = Role(role)
        elif isinstance(role, RoleInterface):
            target = role
        else:
            raise InvalidRoleError(
                "Role must be a string or implement RoleInterface, "
                f"got {_describe(role)}"
            )

        resolved = self._resolve_parents(parents)

        for parent, missing in resolved:
            if (
                parent is target
                or (missing and parent.get_name() == target.get_name())
                or is_reachable(parent, target, upward=True)
            ):
                raise CircularReferenceError(
                    f"To prevent circular references, you cannot add role "
                    f"'{parent.get_name()}' as parent of '{target.get_name()}'"
                )

        for parent, missing in resolved:
            if missing:
                logger.debug(
                    "Creating missing parent role",
                    extra={"role": parent.get_name(), "child": target.get_name()},
                )
                self._roles[parent.get_name()] = parent
            parent.add_child(target)

        self._roles[target.get_name()] = target
        logger.debug(
            "Role registered",
            extra={
                "role": target.get_name(),
                "parents": [parent.get_name() for parent, _ in resolved],
            },
        )

    def _resolve_parents(
        self, parents: RoleLike | Sequence[RoleLike] | None
    ) -> list[tuple[RoleInterface, bool]]:
        """親ロール指定を (ロール, 未登録フラグ) のリストに解決する。レジストリは変更しない。"""
        if parents is None:
            return []
        if isinstance(parents, (str, RoleInterface)):
            entries: Sequence[object] = [parents]
        elif isinstance(parents, (list, tuple)):
            entries = parents
        else:
            raise InvalidRoleError(
                "Parents must be a role, a role name or a list of them, "
                f"got {_describe(parents)}"
            )

        resolved: list[tuple[RoleInterface, bool]] = []
        # 同じ呼び出しで同名の未登録ロールが複数回現れても 1 つだけ作成する。
        # 同名の別オブジェクトは登録先が衝突するため拒否する
        pending: dict[str, RoleInterface] = {}
        for entry in entries:
            if isinstance(entry, str):
                parent = self._roles.get(entry)
                if parent is not None:
                    resolved.append((parent, False))
                    continue
                if not self._create_missing_roles:
                    raise UnknownRoleError(entry)
                if entry not in pending:
                    pending[entry] = Role(entry)
                    resolved.append((pending[entry], True))
            elif isinstance(entry, RoleInterface):
                if self.has_role(entry):
                    resolved.append((entry, False))
                    continue
                if not self._create_missing_roles:
                    raise UnknownRoleError(entry.get_name())
                name = entry.get_name()
                if name in pending:
                    if pending[name] is entry:
                        continue
                    raise InvalidRoleError(
                        f"Different parent roles share the name '{name}'"
                    )
                pending[name] = entry
                resolved.append((entry, True))
            else:
                raise InvalidRoleError(
                    "Parent role must be a string or implement RoleInterface, "
                    f"got {_describe(entry)}"
                )
        return resolved

    def has_role(self, role: RoleLike) -> bool:
        """ロールが登録されているか確認する。

        名前の場合は同名のロールが登録されていれば True。オブジェクトの場合は
        同名で登録されているのが同一オブジェクトである場合のみ True。

        Raises:
            InvalidRoleError: role が文字列でもロールでもない場合
        """
        if isinstance(role, str):
            return role in self._roles
        if not isinstance(role, RoleInterface):
            raise InvalidRoleError(
                "Role must be a string or implement RoleInterface, "
                f"got {_describe(role)}"
            )
        return self._roles.get(role.get_name()) is role

    def get_role(self, name: str) -> RoleInterface:
        """登録済みのロールを返す。

        Raises:
            UnknownRoleError: 指定名のロールが存在しない場合
        """
        role = self._roles.get(name)
        if role is None:
            raise UnknownRoleError(name)
        return role

    def get_roles(self) -> list[RoleInterface]:
        """登録済みのロールを登録順に返す。"""
        return list(self._roles.values())

    def is_granted(
        self,
        role: RoleLike,
        permission: str,
        assertion: AssertionInterface | AssertionCallback | None = None,
    ) -> bool:
        """ロールがパーミッションを許可されているか判定する。

        ロール階層で許可されない場合、assertion は呼び出されずに False を返す。
        許可された場合は assertion があればその結果を最終判定とする。

        Args:
            role: ロール名またはロールオブジェクト（オブジェクトは未登録でもよい）
            permission: パーミッション名
            assertion: assert_ を持つオブジェクト、または同じ引数を取る callable

        Raises:
            InvalidRoleError: role が文字列でもロールでもない場合
            UnknownRoleError: 未登録のロール名が指定された場合
            RbacError: assertion がアサーションとして扱えない場合
        """
        if isinstance(role, str):
            role = self.get_role(role)
        elif not isinstance(role, RoleInterface):
            raise InvalidRoleError(
                "Role must be a string or implement RoleInterface, "
                f"got {_describe(role)}"
            )
        if assertion is not None and not (
            isinstance(assertion, AssertionInterface) or callable(assertion)
        ):
            raise RbacError(
                code=RbacErrorCodes.INVALID_ASSERTION,
                message=(
                    "Assertion must be callable or implement assert_(), "
                    f"got {_describe(assertion)}"
                ),
            )

        if not role.has_permission(permission):
            return False
        if assertion is None:
            return True

        if isinstance(assertion, AssertionInterface):
            granted = bool(assertion.assert_(self, role, permission))
        else:
            granted = bool(assertion(self, role, permission))
        if not granted:
            logger.debug(
                "Permission vetoed by assertion",
                extra={"role": role.get_name(), "permission": permission},
            )
        return granted
