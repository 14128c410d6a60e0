"""Link resolution over the hypermedia collections the API returns."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional

from .errors import VeeamAmbiguityError, VeeamNotFoundError, VeeamProtocolError

if TYPE_CHECKING:
    from .models import EntityReference, Link


def _describe(rel: Optional[str], type: Optional[str]) -> str:
    parts = []
    if rel:
        parts.append(f"rel={rel}")
    if type:
        parts.append(f"type={type}")
    return ", ".join(parts) or "any link"


def find_link(
    links: Iterable["Link"],
    *,
    rel: Optional[str] = None,
    type: Optional[str] = None,
) -> Optional["Link"]:
    """
    Returns the single link matching rel and/or type, or None.
    More than one match raises VeeamAmbiguityError instead of picking one.
    """
    matches: List["Link"] = [
        link
        for link in links or ()
        if (rel is None or link.rel == rel) and (type is None or link.type == type)
    ]
    if len(matches) > 1:
        raise VeeamAmbiguityError(
            f"Ambiguous link lookup ({_describe(rel, type)}): "
            f"{len(matches)} links match",
            candidates=[link.href for link in matches],
        )
    return matches[0] if matches else None


def find_link_href(
    links: Iterable["Link"],
    *,
    rel: Optional[str] = None,
    type: Optional[str] = None,
) -> Optional[str]:
    """
    Extracts the href of an optional link.
    Example: find_link_href(task.links, rel='Related') -> '/api/cloud/tenants/abc'
    """
    link = find_link(links, rel=rel, type=type)
    return link.href if link else None


def require_link_href(
    links: Iterable["Link"],
    *,
    rel: Optional[str] = None,
    type: Optional[str] = None,
) -> str:
    href = find_link_href(links, rel=rel, type=type)
    if not href:
        raise VeeamProtocolError(
            f"Expected hypermedia link ({_describe(rel, type)}) is missing"
        )
    return href


def find_reference(
    references: Iterable["EntityReference"], name: str
) -> Optional["EntityReference"]:
    matches = [ref for ref in references or () if ref.name == name]
    if len(matches) > 1:
        raise VeeamAmbiguityError(
            f"Ambiguous entity name '{name}': {len(matches)} entities match",
            candidates=[ref.uid or ref.href or "" for ref in matches],
        )
    return matches[0] if matches else None


def resolve_entity_href(
    references: Iterable["EntityReference"], name: str, type: str
) -> str:
    """
    Resolve the href of the `type` representation of the entity called `name`.
    Both the entity and its link are mandatory.
    """
    ref = find_reference(references, name)
    href = find_link_href(ref.links, type=type) if ref else None
    if not href:
        raise VeeamNotFoundError(
            f"The {type} entity {name} does not exist or the name is not valid",
            name=name,
            type=type,
        )
    return href


def parse_uid(urn: Optional[str]) -> Optional[str]:
    """
    Extracts the id from a Veeam URN.
    Example: 'urn:veeam:CloudTenant:4b1e...' -> '4b1e...'
    """
    if not urn:
        return None
    if not urn.startswith("urn:"):
        return urn
    tail = urn.rsplit(":", 1)[-1]
    return tail or None


__all__ = [
    "find_link",
    "find_link_href",
    "require_link_href",
    "find_reference",
    "resolve_entity_href",
    "parse_uid",
]
