"""
Asset loader: fetches files from the remote asset host and resolves them in
the cache.

Only the requester that creates a cache slot triggers a fetch; everyone else
asking for the same key while it loads just queues listeners on the slot.
"""
import logging
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote, urljoin

import requests

from app.cache import AssetLoadError, CacheStore, get_discriminator
from config.settings import settings

logger = logging.getLogger("asset.loader")

Decoder = Callable[[str, bytes], Any]

# Files handed to the audio/script layer as transient blob references
BLOB_SUFFIXES = (".wav", ".mp3", ".ogg", ".lua", ".lub", ".txt")


def raw_decoder(key: str, data: bytes) -> bytes:
    """Default decoder: keep the raw bytes."""
    return data


def blob_decoder(create_object_url: Callable[[bytes], str]) -> Decoder:
    """
    Build a decoder that turns file bytes into a revocable blob reference.

    Args:
        create_object_url: Context factory returning a "blob:" reference
    """
    def decode(key: str, data: bytes) -> str:
        return create_object_url(data)
    return decode


class AssetLoader:
    """
    Fetch-and-decode pipeline feeding a CacheStore.

    Usage:
        loader = AssetLoader(store, decoders={".spr": decode_sprite})
        loader.load("data/sprite/poring.spr", on_success=render, on_error=log)
    """

    def __init__(
        self,
        store: CacheStore,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        decoders: Optional[Dict[str, Decoder]] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the loader.

        Args:
            store: Cache to resolve loaded assets into
            base_url: Asset host URL (defaults to settings.asset_base_url)
            timeout: HTTP timeout in seconds
            decoders: Discriminator (".spr", ".pal", ...) -> decoder
            session: HTTP session to reuse
        """
        self._store = store
        self._base_url = base_url or settings.asset_base_url
        if not self._base_url.endswith("/"):
            self._base_url += "/"
        self._timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._decoders: Dict[str, Decoder] = dict(decoders or {})
        self._session = session or requests.Session()
        if settings.asset_host_token:
            self._session.headers["Authorization"] = f"Bearer {settings.asset_host_token}"

    def register_decoder(self, discriminator: str, decoder: Decoder) -> None:
        self._decoders[discriminator.lower()] = decoder

    def url_for(self, key: str) -> str:
        return urljoin(self._base_url, quote(key.lstrip("/")))

    def load(
        self,
        key: str,
        on_success: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Any], None]] = None,
    ) -> Optional[Any]:
        """
        Request an asset, fetching it only if nobody has asked for it yet.

        Returns:
            The cached payload, or None if the asset is still loading
        """
        payload, created = self._store.get_or_create(key, on_success, on_error)
        if created:
            self._fetch(key)
        return payload

    def _fetch(self, key: str) -> None:
        """Fetch and decode `key`, then resolve the cache entry exactly once."""
        url = self.url_for(key)
        logger.debug(f"Fetching {key} from {url}")

        try:
            response = self._session.get(url, timeout=self._timeout)
            response.raise_for_status()
            data = response.content
        except requests.RequestException as e:
            logger.warning(f"Fetch failed for {key}: {e}")
            self._store.set(key, AssetLoadError(key, str(e)), error=True)
            return

        if not data:
            self._store.set(key, AssetLoadError(key, "empty response"), error=True)
            return

        decoder = self._decoders.get(get_discriminator(key), raw_decoder)
        try:
            payload = decoder(key, data)
        except Exception as e:
            logger.warning(f"Decode failed for {key}: {e}")
            self._store.set(key, AssetLoadError(key, f"decode error: {e}"), error=True)
            return

        self._store.set(key, payload)

    def close(self) -> None:
        self._session.close()
