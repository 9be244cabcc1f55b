from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from clarity.quality.sharpness import InvalidInputError, LuminanceGrid


# Longest side kept before scoring; bounds the per-image cost only.
MAX_SIDE = 1024


class ImageLoadError(IOError):
    """Image file could not be opened or decoded."""


@dataclass
class LoadedImage:
    path: str
    rgb: np.ndarray  # HWC, uint8
    width: int
    height: int
    original_width: int
    original_height: int


def _exif_transpose(pil_img: Image.Image) -> Image.Image:
    try:
        pil_img = ImageOps.exif_transpose(pil_img)
    except Exception:
        pass
    return pil_img


def _downscale(pil_img: Image.Image, max_side: Optional[int]) -> Image.Image:
    if not max_side or max_side <= 0:
        return pil_img
    w, h = pil_img.size
    largest = max(w, h)
    if largest <= max_side:
        return pil_img
    scale = max_side / float(largest)
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    return pil_img.resize((new_w, new_h), Image.LANCZOS)


def load_image(path: Union[str, Path], max_side: int = MAX_SIDE) -> LoadedImage:
    p = str(path)
    try:
        with Image.open(p) as im:
            im = _exif_transpose(im)
            pil = im.convert("RGB")
    except (OSError, UnidentifiedImageError) as e:
        raise ImageLoadError(f"Cannot read image {p}: {e}") from e

    orig_w, orig_h = pil.size
    pil = _downscale(pil, max_side)
    w, h = pil.size
    rgb = np.array(pil, dtype=np.uint8)
    return LoadedImage(
        path=p,
        rgb=rgb,
        width=w,
        height=h,
        original_width=orig_w,
        original_height=orig_h,
    )


def extract_luminance(
    image: Union[Image.Image, np.ndarray],
    max_side: Optional[int] = None,
) -> LuminanceGrid:
    """
    Convert an RGB (HxWx3) or grayscale (HxW) image into a byte luminance grid.

    Luma uses the fixed-point weights (77R + 150G + 29B) >> 8. Pass `max_side`
    to downscale first; images already bounded by `load_image` need nothing.
    """
    if isinstance(image, Image.Image):
        pil = image if image.mode in ("RGB", "L") else image.convert("RGB")
    else:
        arr = np.asarray(image)
        if arr.dtype != np.uint8:
            raise InvalidInputError(f"Image array must be uint8, got dtype {arr.dtype}")
        if not (arr.ndim == 2 or (arr.ndim == 3 and arr.shape[2] in (3, 4))):
            raise InvalidInputError(f"Image array must be HxW, HxWx3 or HxWx4, got shape {arr.shape}")
        pil = Image.fromarray(np.ascontiguousarray(arr))
    pil = _downscale(pil, max_side)

    arr = np.asarray(pil)
    if arr.ndim == 2:
        luma = arr.astype(np.uint8)
    else:
        rgb = arr[..., :3].astype(np.uint32)
        luma = (77 * rgb[..., 0] + 150 * rgb[..., 1] + 29 * rgb[..., 2]) >> 8
        luma = np.clip(luma, 0, 255).astype(np.uint8)

    h, w = luma.shape[:2]
    return LuminanceGrid(width=int(w), height=int(h), samples=luma.tobytes())
