"""k1s0 rbac library."""

from .assertion import AssertionInterface, AssertionSet, CallbackAssertion
from .config import RbacConfig, load_config
from .exceptions import (
    CircularReferenceError,
    InvalidRoleError,
    RbacError,
    RbacErrorCodes,
    UnknownRoleError,
)
from .rbac import Rbac
from .role import Role, RoleInterface

__all__ = [
    "Rbac",
    "Role",
    "RoleInterface",
    "AssertionInterface",
    "AssertionSet",
    "CallbackAssertion",
    "RbacConfig",
    "load_config",
    "RbacError",
    "RbacErrorCodes",
    "InvalidRoleError",
    "UnknownRoleError",
    "CircularReferenceError",
]
