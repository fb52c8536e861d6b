"""ロールとロール階層"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .exceptions import CircularReferenceError


@runtime_checkable
class RoleInterface(Protocol):
    """ロールとして扱われるオブジェクトが備えるべきメソッド群。

    Rbac はこのプロトコルを満たすオブジェクトであれば Role 以外の
    独自実装もロールとして登録・評価する。
    """

    def get_name(self) -> str: ...

    def has_permission(self, name: str) -> bool: ...

    def add_parent(self, parent: RoleInterface) -> None: ...

    def add_child(self, child: RoleInterface) -> None: ...

    def get_parents(self) -> list[RoleInterface]: ...

    def get_children(self) -> list[RoleInterface]: ...


def _contains(roles: list[RoleInterface], role: RoleInterface) -> bool:
    return any(r is role for r in roles)


def is_reachable(start: RoleInterface, target: RoleInterface, *, upward: bool) -> bool:
    """start から parents（upward=True）または children を辿って target に到達できるか。

    ダイアモンド継承で同じロールを何度も展開しないよう訪問済みを記録する。
    """
    visited: set[int] = set()
    stack = list(start.get_parents() if upward else start.get_children())
    while stack:
        current = stack.pop()
        if current is target:
            return True
        if id(current) in visited:
            continue
        visited.add(id(current))
        stack.extend(current.get_parents() if upward else current.get_children())
    return False


def _walks_inline(role: RoleInterface, method: str) -> bool:
    """role の method が Role の実装のままであれば True（探索を呼び出し元で継続できる）。"""
    return isinstance(role, Role) and getattr(type(role), method, None) is getattr(Role, method)


class Role:
    """パーミッションを保持し、子ロールのパーミッションを継承するロール。

    親ロールは子ロールのパーミッションをすべて持つ。つまり階層の上位に
    あるロールほど権限が広い。
    """

    def __init__(self, name: str) -> None:
        self._name = name
        # 挿入順を保つため dict をセットとして使う
        self._permissions: dict[str, None] = {}
        self._parents: list[RoleInterface] = []
        self._children: list[RoleInterface] = []

    @property
    def name(self) -> str:
        return self._name

    def get_name(self) -> str:
        """ロール名を返す。"""
        return self._name

    def add_permission(self, name: str) -> None:
        """パーミッションを追加する。同じ名前の再追加は何もしない。"""
        self._permissions[name] = None

    def has_permission(self, name: str) -> bool:
        """自身または子孫ロールのいずれかがパーミッションを持つか確認する。

        自身を先に確認し、その後 children を登録順に深さ優先で辿る。
        深い階層でも再帰せず、共有された子孫は一度だけ確認する。
        """
        visited: set[int] = set()
        stack: list[RoleInterface] = [self]
        while stack:
            current = stack.pop()
            if id(current) in visited:
                continue
            visited.add(id(current))
            if current is not self and not _walks_inline(current, "has_permission"):
                # 独自実装や判定を上書きしたロールは自身の判定に委ねる
                if current.has_permission(name):
                    return True
                continue
            if name in current._permissions:
                return True
            stack.extend(reversed(current._children))
        return False

    def get_permissions(self, children: bool = True) -> list[str]:
        """パーミッション一覧を返す。

        Args:
            children: True の場合は子孫ロールから継承したものも含める

        Returns:
            重複なしのパーミッション名リスト（自身の分が先頭）
        """
        if not children:
            return list(self._permissions)
        permissions: dict[str, None] = {}
        visited: set[int] = set()
        stack: list[RoleInterface] = [self]
        while stack:
            current = stack.pop()
            if id(current) in visited:
                continue
            visited.add(id(current))
            if current is self or _walks_inline(current, "get_permissions"):
                inherited: list[str] = list(current._permissions)
                stack.extend(reversed(current._children))
            else:
                # get_permissions は RoleInterface の必須メソッドではない
                get_permissions = getattr(current, "get_permissions", None)
                inherited = list(get_permissions()) if get_permissions is not None else []
            for permission in inherited:
                permissions.setdefault(permission, None)
        return list(permissions)

    def add_parent(self, parent: RoleInterface) -> None:
        """親ロールを追加し、親側にも自身を子として登録する。

        Raises:
            CircularReferenceError: parent が自身または自身の子孫の場合
        """
        if _contains(self._parents, parent):
            return
        if parent is self or self.has_descendant(parent):
            raise CircularReferenceError(
                f"To prevent circular references, you cannot add role "
                f"'{parent.get_name()}' as parent of '{self._name}'"
            )
        self._parents.append(parent)
        try:
            parent.add_child(self)
        except Exception:
            self._parents.remove(parent)
            raise

    def add_child(self, child: RoleInterface) -> None:
        """子ロールを追加し、子側にも自身を親として登録する。

        Raises:
            CircularReferenceError: child が自身または自身の祖先の場合
        """
        if _contains(self._children, child):
            return
        if child is self or self.has_ancestor(child):
            raise CircularReferenceError(
                f"To prevent circular references, you cannot add role "
                f"'{child.get_name()}' as child of '{self._name}'"
            )
        self._children.append(child)
        try:
            child.add_parent(self)
        except Exception:
            self._children.remove(child)
            raise

    def get_parents(self) -> list[RoleInterface]:
        """親ロールのコピーを返す。"""
        return list(self._parents)

    def get_children(self) -> list[RoleInterface]:
        """子ロールのコピーを返す。"""
        return list(self._children)

    def has_ancestor(self, role: RoleInterface) -> bool:
        """role が parents を辿って到達できる祖先か確認する。"""
        return is_reachable(self, role, upward=True)

    def has_descendant(self, role: RoleInterface) -> bool:
        """role が children を辿って到達できる子孫か確認する。"""
        return is_reachable(self, role, upward=False)

    def __repr__(self) -> str:
        return f"<Role {self._name}>"
