"""Observed cluster resource data structures."""

from __future__ import annotations

from dataclasses import dataclass

READY_STATUS = "Ready"


@dataclass(frozen=True)
class OwnerReference:
    """One entry of ``metadata.ownerReferences``."""

    name: str
    kind: str = ""
    api_version: str = ""


@dataclass(frozen=True)
class ResourceInstance:
    """A single object decoded from a list response.

    Created fresh on every decode and discarded at the end of the cycle.
    """

    name: str
    namespace: str = ""
    status: str = ""
    owner_references: tuple[OwnerReference, ...] = ()

    @property
    def owner(self) -> OwnerReference | None:
        """The first declared owner, or None."""
        return self.owner_references[0] if self.owner_references else None

    def is_owned_by(self, name: str, all_owners: bool = False) -> bool:
        """True if the (first, or any when *all_owners*) owner is named *name*."""
        if all_owners:
            return any(ref.name == name for ref in self.owner_references)
        owner = self.owner
        return owner is not None and owner.name == name


@dataclass(frozen=True)
class ResourceIdentity:
    """Unique key of a top-level composition record."""

    kind: str
    name: str
    namespace: str
