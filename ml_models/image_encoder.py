"""
image_encoder.py
================
Turn an uploaded image into the input tensor expected by the scan classifier.

Encoding:
  • Decode any format Pillow understands (PNG, JPEG, BMP, GIF first frame …)
  • Force 3-channel RGB (drops alpha, expands greyscale / palette images)
  • Bilinear resize to a fixed square, e.g. 224 × 224
  • Scale pixel values from [0, 255] to [0.0, 1.0]
  • Channels-first layout plus a leading batch dimension

  Output tensor shape: (1, 3, size, size), dtype float32.
"""

from __future__ import annotations

import io

import numpy as np
import torch
from PIL import Image, UnidentifiedImageError


class ImageDecodeError(ValueError):
    """Raised when the uploaded bytes are not a decodable image."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def decode_image(data: bytes) -> Image.Image:
    """Decode raw bytes into an RGB Pillow image."""
    if not data:
        raise ImageDecodeError("empty image payload")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageDecodeError(f"cannot decode image: {exc}") from exc


def encode_image(data: bytes, size: int = 224) -> torch.Tensor:
    """
    Decode, resize and normalise an image into a batched float tensor.

    Returns
    -------
    torch.Tensor of shape (1, 3, size, size), values in [0, 1].
    """
    img = decode_image(data).resize((size, size), Image.Resampling.BILINEAR)

    pixels = np.asarray(img, dtype=np.float32) / 255.0   # (H, W, 3)
    chw = np.ascontiguousarray(pixels.transpose(2, 0, 1))  # (3, H, W)
    return torch.from_numpy(chw).unsqueeze(0)              # (1, 3, H, W)
