from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def checkerboard_photo(tmp_path: Path) -> Path:
    arr = np.full((64, 96, 3), 20, dtype=np.uint8)
    arr[::2, ::2] = 235
    arr[1::2, 1::2] = 235
    path = tmp_path / "sharp.png"
    Image.fromarray(arr).save(path)
    return path


@pytest.fixture
def soft_photo(tmp_path: Path) -> Path:
    # Smooth horizontal ramp, far less high-frequency energy than the checkerboard
    ramp = np.tile(np.linspace(60, 190, 96).astype(np.uint8), (64, 1))
    arr = np.stack([ramp, ramp, ramp], axis=2)
    path = tmp_path / "soft.png"
    Image.fromarray(arr).save(path)
    return path


@pytest.fixture
def flat_photo(tmp_path: Path) -> Path:
    path = tmp_path / "flat.png"
    Image.new("RGB", (40, 30), color=(128, 128, 128)).save(path)
    return path
