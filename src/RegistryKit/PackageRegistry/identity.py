# === NAVMAP v1 ===
# {
#   "module": "RegistryKit.PackageRegistry.identity",
#   "purpose": "Validate scope and package identifiers used as dynamic configuration keys",
#   "sections": [
#     {
#       "id": "scope",
#       "name": "Scope",
#       "anchor": "class-scope",
#       "kind": "class"
#     },
#     {
#       "id": "packagename",
#       "name": "PackageName",
#       "anchor": "class-packagename",
#       "kind": "class"
#     },
#     {
#       "id": "registryidentity",
#       "name": "RegistryIdentity",
#       "anchor": "class-registryidentity",
#       "kind": "class"
#     },
#     {
#       "id": "packageidentity",
#       "name": "PackageIdentity",
#       "anchor": "class-packageidentity",
#       "kind": "class"
#     },
#     {
#       "id": "parse-scope",
#       "name": "parse_scope",
#       "anchor": "function-parse-scope",
#       "kind": "function"
#     },
#     {
#       "id": "is-registry-identity",
#       "name": "is_registry_identity",
#       "anchor": "function-is-registry-identity",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Scope and package identity grammar.

Registry-hosted packages are addressed as ``<scope>.<name>``.  Scopes and
names are compared case-insensitively but keep their original spelling so that
encoded documents reproduce what the user wrote.

Scope grammar:
    1-39 ASCII alphanumerics or hyphens; a hyphen may not lead, trail, or
    follow another hyphen.

Name grammar:
    1-100 ASCII alphanumerics, hyphens, or underscores; punctuation may not
    lead, trail, or follow other punctuation.

Bracketed keys such as ``[default]`` never satisfy the scope grammar, which
keeps the reserved registry key disjoint from every real scope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic_core import core_schema

__all__ = [
    "SCOPE_MAX_LENGTH",
    "NAME_MAX_LENGTH",
    "SCOPE_PATTERN",
    "PACKAGE_IDENTITY_PATTERN",
    "IdentifierError",
    "Scope",
    "PackageName",
    "RegistryIdentity",
    "PackageIdentity",
    "parse_scope",
    "is_registry_identity",
]

SCOPE_MAX_LENGTH = 39
NAME_MAX_LENGTH = 100

_SCOPE_BODY = r"[A-Za-z0-9](?:-?[A-Za-z0-9])*"
_NAME_BODY = r"[A-Za-z0-9](?:[-_]?[A-Za-z0-9])*"

# Regex equivalents of the grammar, used for JSON Schema generation.
SCOPE_PATTERN = rf"^(?=.{{1,{SCOPE_MAX_LENGTH}}}$){_SCOPE_BODY}$"
PACKAGE_IDENTITY_PATTERN = (
    rf"^(?=[^.]{{1,{SCOPE_MAX_LENGTH}}}\.){_SCOPE_BODY}"
    rf"\.(?=[^.]{{1,{NAME_MAX_LENGTH}}}$){_NAME_BODY}$"
)


class IdentifierError(ValueError):
    """Raised when a string does not satisfy the scope or name grammar."""


def _is_ascii_alnum(character: str) -> bool:
    return character.isascii() and character.isalnum()


def _check_punctuation(value: str, kind: str, allowed: str) -> None:
    plural = "Hyphens" if allowed == "-" else "Hyphens and underscores"
    previous_was_punctuation = False
    for index, character in enumerate(value):
        if _is_ascii_alnum(character):
            previous_was_punctuation = False
            continue
        if character not in allowed:
            if allowed == "-":
                raise IdentifierError(f"A package {kind} consists of alphanumeric characters and hyphens.")
            raise IdentifierError(
                f"A package {kind} consists of alphanumeric characters, underscores, and hyphens."
            )
        if index == 0:
            raise IdentifierError(f"{plural} may not occur at the beginning of a {kind}.")
        if index == len(value) - 1:
            raise IdentifierError(f"{plural} may not occur at the end of a {kind}.")
        if previous_was_punctuation:
            raise IdentifierError(f"{plural} may not occur consecutively within a {kind}.")
        previous_was_punctuation = True


class _Identifier:
    """Case-insensitive identifier that preserves its original spelling."""

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        self._value = value

    @property
    def normalized(self) -> str:
        return self._value.lower()

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.normalized == other.normalized  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.normalized))

    def __lt__(self, other: "_Identifier") -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.normalized < other.normalized

    @classmethod
    def _coerce(cls, value: Any) -> Any:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(value)
        raise ValueError(f"{cls.__name__} must be a string, got {type(value).__name__}")

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._coerce,
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


class Scope(_Identifier):
    """Validated namespace prefix of a registry package identity."""

    __slots__ = ()

    def __init__(self, value: str) -> None:
        if not value:
            raise IdentifierError("The minimum length of a package scope is 1 character.")
        if len(value) > SCOPE_MAX_LENGTH:
            raise IdentifierError(
                f"The maximum length of a package scope is {SCOPE_MAX_LENGTH} characters."
            )
        _check_punctuation(value, "scope", "-")
        super().__init__(value)


class PackageName(_Identifier):
    """Validated name component of a registry package identity."""

    __slots__ = ()

    def __init__(self, value: str) -> None:
        if not value:
            raise IdentifierError("The minimum length of a package name is 1 character.")
        if len(value) > NAME_MAX_LENGTH:
            raise IdentifierError(
                f"The maximum length of a package name is {NAME_MAX_LENGTH} characters."
            )
        _check_punctuation(value, "name", "-_")
        super().__init__(value)


@dataclass(frozen=True)
class RegistryIdentity:
    """``<scope>.<name>`` form of a registry-family package identity."""

    scope: Scope
    name: PackageName

    def __str__(self) -> str:
        return f"{self.scope}.{self.name}"


class PackageIdentity(_Identifier):
    """Opaque package identifier.

    Any string is a package identity; only those whose text parses as
    ``<scope>.<name>`` belong to the registry family.
    """

    __slots__ = ()

    @classmethod
    def plain(cls, value: str) -> "PackageIdentity":
        return cls(value)

    @property
    def registry(self) -> Optional[RegistryIdentity]:
        """Return the registry form of this identity, or ``None`` if it has none."""

        scope_part, separator, name_part = self._value.partition(".")
        if not separator:
            return None
        try:
            return RegistryIdentity(scope=Scope(scope_part), name=PackageName(name_part))
        except IdentifierError:
            return None

    @property
    def is_registry(self) -> bool:
        return self.registry is not None


def parse_scope(value: str) -> Scope:
    """Validate ``value`` against the scope grammar.

    Raises:
        IdentifierError: If the string is not a valid scope.
    """

    return Scope(value)


def is_registry_identity(identity: Union[PackageIdentity, str]) -> bool:
    """Return whether ``identity`` is addressed through a package registry."""

    if isinstance(identity, str):
        identity = PackageIdentity.plain(identity)
    return identity.is_registry
