"""Network constants for the Seal example contracts and Walrus publishers."""

from __future__ import annotations

PACKAGE_ID = "0x4cb081457b1e098d566a277f605ba48410e26e66eaab5b3be4f6c560e9501800"

SUI_TESTNET_RPC_URL = "https://fullnode.testnet.sui.io:443"

PUBLISHER_URLS = [
    "https://seal-example.vercel.app/publisher1/v1/blobs",
    "https://seal-example.vercel.app/publisher2/v1/blobs",
    "https://seal-example.vercel.app/publisher3/v1/blobs",
    "https://seal-example.vercel.app/publisher4/v1/blobs",
    "https://seal-example.vercel.app/publisher5/v1/blobs",
    "https://seal-example.vercel.app/publisher6/v1/blobs",
]

DEFAULT_IMAGE_URL = "https://picsum.photos/800/600"

# Random image services, in order of preference. ``{seed}`` is filled per probe.
RANDOM_IMAGE_SOURCES = [
    "https://picsum.photos/{width}/{height}?random={seed}",
    "https://picsum.photos/seed/{seed}/{width}/{height}",
    "https://source.unsplash.com/random/{width}x{height}/?sig={seed}",
    "https://loremflickr.com/{width}/{height}?lock={seed}",
]

# Subscription service parameters used by the Seal example contract
SERVICE_AMOUNT = 10
SERVICE_DURATION_MS = 60_000_000
