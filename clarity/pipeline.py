from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from clarity.quality.normalize import PercentagePair, describe, relative_percentages
from clarity.quality.sharpness import DEFAULT_VARIANCE_THRESHOLD, SharpnessScore, score_grid
from clarity.utils.image import MAX_SIDE, ImageLoadError, LoadedImage, extract_luminance, load_image
from clarity.utils.logging import setup_logger
from clarity.viz.report import render_report


logger = setup_logger()

RESULT_FILE = "comparison.json"

ProgressCallback = Callable[[str, float, Dict], None]


@dataclass
class PhotoInfo:
    path: str
    width: int
    height: int
    original_width: int
    original_height: int

    @classmethod
    def from_loaded(cls, li: LoadedImage) -> "PhotoInfo":
        return cls(
            path=li.path,
            width=li.width,
            height=li.height,
            original_width=li.original_width,
            original_height=li.original_height,
        )


@dataclass
class Comparison:
    photo_a: PhotoInfo
    photo_b: PhotoInfo
    score_a: SharpnessScore
    score_b: SharpnessScore
    percentages: PercentagePair
    message: str

    def to_dict(self) -> Dict[str, Any]:
        leading = self.percentages.leading
        return {
            "photos": {
                "a": {**vars(self.photo_a), "score": self.score_a.to_dict(), "percent": self.percentages.a},
                "b": {**vars(self.photo_b), "score": self.score_b.to_dict(), "percent": self.percentages.b},
            },
            "percentages": self.percentages.to_dict(),
            "leading": leading.value if leading is not None else None,
            "message": self.message,
        }


def _load(path: Union[str, Path], max_side: int, slot: str) -> LoadedImage:
    try:
        return load_image(path, max_side=max_side)
    except ImageLoadError as e:
        logger.warning(f"Failed to load photo {slot} {path}: {e}")
        raise


def compare_images(
    path_a: Union[str, Path],
    path_b: Union[str, Path],
    max_side: int = MAX_SIDE,
    variance_threshold: float = DEFAULT_VARIANCE_THRESHOLD,
    progress_cb: Optional[ProgressCallback] = None,
) -> Comparison:
    def _progress(stage: str, pct: float, extra: Optional[Dict] = None):
        try:
            if progress_cb:
                progress_cb(stage, float(max(0.0, min(100.0, pct))), extra or {})
        except Exception:
            pass

    li_a = _load(path_a, max_side, "A")
    li_b = _load(path_b, max_side, "B")
    _progress("load", 30.0, {"a": li_a.path, "b": li_b.path})

    scores = []
    for slot, li in (("A", li_a), ("B", li_b)):
        grid = extract_luminance(li.rgb)
        score = score_grid(grid, variance_threshold)
        logger.info(
            f"Photo {slot} {li.path} ({grid.width}x{grid.height}): "
            f"{score.method.value} score={score.value:.4f}"
        )
        scores.append(score)
    score_a, score_b = scores
    _progress("score", 80.0, {"a": score_a.value, "b": score_b.value})

    pair = relative_percentages(score_a.value, score_b.value)
    message = describe(pair)
    _progress("normalize", 95.0, pair.to_dict())

    comparison = Comparison(
        photo_a=PhotoInfo.from_loaded(li_a),
        photo_b=PhotoInfo.from_loaded(li_b),
        score_a=score_a,
        score_b=score_b,
        percentages=pair,
        message=message,
    )
    _progress("done", 100.0, {"message": message})
    return comparison


def save_comparison(path: Union[str, Path], data: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def load_comparison(path: Union[str, Path]) -> Optional[Dict[str, Any]]:
    p = Path(path)
    if not p.exists():
        return None
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def run_comparison(
    path_a: Union[str, Path],
    path_b: Union[str, Path],
    output_dir: Union[str, Path],
    max_side: int = MAX_SIDE,
    variance_threshold: float = DEFAULT_VARIANCE_THRESHOLD,
    progress_cb: Optional[ProgressCallback] = None,
) -> Dict[str, Any]:
    """Compare two photos and write comparison.json plus report.html into output_dir."""
    out_root = Path(output_dir)
    out_root.mkdir(parents=True, exist_ok=True)

    comparison = compare_images(
        path_a,
        path_b,
        max_side=max_side,
        variance_threshold=variance_threshold,
        progress_cb=progress_cb,
    )
    out = comparison.to_dict()
    out["params"] = {"max_side": max_side, "variance_threshold": variance_threshold}

    save_comparison(out_root / RESULT_FILE, out)
    render_report(out_root, out)
    logger.info(f"{comparison.message} → {out_root / 'report.html'}")
    return out
