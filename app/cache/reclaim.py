"""
Resource reclamation policy and asset variants.

Decoded assets may own handles in an external context (GPU textures,
transient blob URLs). When a key is evicted its asset variant releases those
handles. The variant is chosen once, when the entry resolves, from the key's
suffix.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Type

logger = logging.getLogger("cache.reclaim")

BLOB_URL_PREFIX = "blob:"


class ResourceContext(Protocol):
    """External owner of the handles referenced by cached payloads."""

    def is_texture(self, handle: Any) -> bool:
        """True if `handle` is a live texture owned by this context."""
        ...

    def delete_texture(self, handle: Any) -> None:
        ...

    def revoke_object_url(self, ref: str) -> None:
        ...


class NullResourceContext:
    """Context for headless sessions: owns no textures, revokes nothing."""

    def is_texture(self, handle: Any) -> bool:
        return False

    def delete_texture(self, handle: Any) -> None:
        pass

    def revoke_object_url(self, ref: str) -> None:
        pass


def get_discriminator(key: str) -> str:
    """
    Extract the reclamation discriminator from a key.

    The discriminator runs from the last "." to the end, lower-cased.
    Keys without a "." get the empty discriminator.

        >>> get_discriminator("data/sprite/Poring.SPR")
        '.spr'
        >>> get_discriminator("README")
        ''
    """
    index = key.rfind(".")
    if index == -1:
        return ""
    return key[index:].lower()


def _release_texture(context: ResourceContext, handle: Any) -> bool:
    """Release `handle` if it is still a live texture in `context`."""
    if handle is None or not context.is_texture(handle):
        return False
    context.delete_texture(handle)
    return True


class AssetKind:
    """Base asset variant. Subclasses release their external resources."""

    name = "opaque"

    def __init__(self, payload: Any = None):
        self.payload = payload

    def release(self, context: ResourceContext) -> int:
        """
        Release external resources held by the payload.

        Returns:
            Number of handles released
        """
        return 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class OpaqueAsset(AssetKind):
    """Payload with no external resource attached."""


class SpriteAsset(AssetKind):
    """Sprite sheet: one texture per frame plus an optional sheet texture."""

    name = "sprite"

    def release(self, context: ResourceContext) -> int:
        released = 0
        for frame in getattr(self.payload, "frames", None) or []:
            if _release_texture(context, getattr(frame, "texture", None)):
                released += 1
        if _release_texture(context, getattr(self.payload, "texture", None)):
            released += 1
        return released


class PaletteAsset(AssetKind):
    """Palette uploaded as a single texture."""

    name = "palette"

    def release(self, context: ResourceContext) -> int:
        return int(_release_texture(context, getattr(self.payload, "texture", None)))


class TransientBlobAsset(AssetKind):
    """Ephemeral blob reference (audio, scripts, text) that must be revoked."""

    name = "blob"

    def release(self, context: ResourceContext) -> int:
        context.revoke_object_url(self.payload)
        return 1


# Discriminator -> variant. Anything not listed falls through to the
# blob/opaque check in classify_asset().
RECLAIM_POLICIES: Dict[str, Type[AssetKind]] = {
    ".spr": SpriteAsset,
    ".pal": PaletteAsset,
}


def is_blob_reference(payload: Any) -> bool:
    return isinstance(payload, str) and payload.startswith(BLOB_URL_PREFIX)


def classify_asset(key: str, payload: Optional[Any]) -> AssetKind:
    """
    Pick the asset variant for a resolved entry.

    Args:
        key: Cache key (filename)
        payload: Resolved payload; None or falsy for failed loads

    Returns:
        AssetKind wrapping the payload
    """
    if not payload:
        return OpaqueAsset(payload)

    kind = RECLAIM_POLICIES.get(get_discriminator(key))
    if kind is not None:
        return kind(payload)

    if is_blob_reference(payload):
        return TransientBlobAsset(payload)

    return OpaqueAsset(payload)
