"""
Client bundle storage.

Generates, persists and destroys the device-held half of the key material.
"""

import logging
import secrets
import time
from typing import Callable, Optional

from tmawallet.storage import KeyValueStorage

from .errors import AlreadyExistsError, RandomSourceUnavailableError
from .models import BUNDLE_KEYS, KEY_SIZE, ClientBundle


logger = logging.getLogger(__name__)

RandomSource = Callable[[int], bytes]


class BundleStore:
    """
    Owns the client bundle.

    The random source must be a CSPRNG. It is probed once at construction so
    a broken environment fails loudly instead of producing weak keys later.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        random_source: Optional[RandomSource] = secrets.token_bytes,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self._random = _checked_random_source(random_source)
        self._clock = clock
        self._bundle: Optional[ClientBundle] = None

    @property
    def bundle(self) -> Optional[ClientBundle]:
        return self._bundle

    async def get_bundle(self) -> Optional[ClientBundle]:
        values = await self.storage.get_items(BUNDLE_KEYS)
        self._bundle = ClientBundle.from_storage(values) if values else None
        return self._bundle

    async def create_bundle(self) -> ClientBundle:
        if self._bundle is not None:
            raise AlreadyExistsError()

        bundle = ClientBundle(
            timestamp=int(self._clock() * 1000),
            client_public_key=self._draw(),
            client_secret_key=self._draw(),
        )
        await self.storage.set_items(bundle.to_storage())
        self._bundle = bundle

        logger.info(f"Created client bundle {bundle.client_public_key.hex()[:8]}... at {bundle.timestamp}")
        return bundle

    async def destroy_bundle(self) -> None:
        await self.storage.remove_items(BUNDLE_KEYS)
        self._bundle = None
        logger.info("Destroyed client bundle")

    def _draw(self) -> bytes:
        value = self._random(KEY_SIZE)
        if not isinstance(value, (bytes, bytearray)) or len(value) != KEY_SIZE:
            raise RandomSourceUnavailableError(f"Random source did not return {KEY_SIZE} bytes")
        return bytes(value)


def _checked_random_source(random_source: Optional[RandomSource]) -> RandomSource:
    if random_source is None:
        raise RandomSourceUnavailableError()
    try:
        probe = random_source(1)
    except (NotImplementedError, OSError) as exc:
        raise RandomSourceUnavailableError(f"Random source unusable: {exc}") from exc
    if not isinstance(probe, (bytes, bytearray)) or len(probe) != 1:
        raise RandomSourceUnavailableError("Random source returned an unexpected value")
    return random_source
