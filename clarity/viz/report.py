from __future__ import annotations

import html
import os
from pathlib import Path
from typing import Any, Dict


BOOTSTRAP_CSS = "https://cdn.jsdelivr.net/npm/bootstrap@5.3.2/dist/css/bootstrap.min.css"


def _format_float(value: Any) -> str:
    try:
        return f"{float(value):.2f}"
    except (TypeError, ValueError):
        return ""


def _img_src(out_root: Path, photo_path: str) -> str:
    try:
        return os.path.relpath(photo_path, start=out_root)
    except ValueError:
        return photo_path


def _photo_card(out_root: Path, slot: str, photo: Dict, leading: Any) -> str:
    score = photo.get("score", {}) or {}
    percent = photo.get("percent")
    is_leading = leading == slot
    badge_class = "bg-success" if is_leading else "bg-secondary"
    border_class = "border-success" if is_leading else "border-0"

    path = str(photo.get("path", ""))
    src = html.escape(_img_src(out_root, path))
    method = html.escape(str(score.get("method") or "--"))
    value = _format_float(score.get("value")) or "--"
    laplacian = _format_float(score.get("laplacian")) or "--"
    tenengrad = _format_float(score.get("tenengrad")) or "n/a"

    size = f"{photo.get('width', '?')}×{photo.get('height', '?')}"
    if (photo.get("original_width"), photo.get("original_height")) != (photo.get("width"), photo.get("height")):
        size += f" (from {photo.get('original_width', '?')}×{photo.get('original_height', '?')})"

    percent_html = f"{int(percent)}%" if percent is not None else "--"

    return f"""
    <div class=\"col-12 col-md-6\">
      <section class=\"card shadow-sm {border_class} h-100 photo-card\">
        <div class=\"card-header bg-white d-flex justify-content-between align-items-center\">
          <strong>Photo {html.escape(slot)}</strong>
          <span class=\"badge {badge_class} rounded-pill fs-6\">{percent_html}</span>
        </div>
        <a class=\"text-center p-3\" href=\"{src}\" target=\"_blank\"><img src=\"{src}\" alt=\"Photo {html.escape(slot)}\" class=\"shadow-sm\"/></a>
        <div class=\"card-body small\">
          <div class=\"text-muted text-truncate mb-2\" title=\"{html.escape(path)}\">{html.escape(path)}</div>
          <table class=\"table table-sm mb-0\">
            <tr><th>Score</th><td>{value}</td></tr>
            <tr><th>Method</th><td>{method}</td></tr>
            <tr><th>Laplacian variance</th><td>{laplacian}</td></tr>
            <tr><th>Tenengrad</th><td>{tenengrad}</td></tr>
            <tr><th>Scored size</th><td>{html.escape(size)}</td></tr>
          </table>
        </div>
      </section>
    </div>
    """


def render_report(out_root: Path, result: Dict) -> Path:
    out_root = Path(out_root)
    photos = result.get("photos", {}) or {}
    leading = result.get("leading")
    message = result.get("message") or "No comparison result"

    cards = [
        _photo_card(out_root, slot.upper(), photos[slot], leading)
        for slot in ("a", "b")
        if slot in photos
    ]
    cards_html = "".join(cards) if cards else "<div class='alert alert-warning'>No photos in this result.</div>"
    alert_class = "alert-success" if leading else "alert-info"

    params = result.get("params", {}) or {}
    params_bits = []
    if "max_side" in params:
        params_bits.append(f"max side {params['max_side']}px")
    if "variance_threshold" in params:
        params_bits.append(f"variance threshold {params['variance_threshold']}")
    params_html = html.escape(" · ".join(params_bits))

    html_doc = f"""
    <!doctype html>
    <html>
      <head>
        <meta charset=\"utf-8\" />
        <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
        <title>Sharpness Comparison</title>
        <link href=\"{BOOTSTRAP_CSS}\" rel=\"stylesheet\"/>
        <style>
          body {{ background-color: #f8f9fa; }}
          .photo-card {{ background-color: #ffffff; }}
          .photo-card img {{ max-width: 100%; max-height: 420px; object-fit: contain; border-radius: 0.75rem; }}
          .photo-card th {{ font-weight: 500; color: #6c757d; width: 45%; }}
        </style>
      </head>
      <body>
        <div class=\"container my-4\">
          <h3 class=\"mb-3\">Sharpness Comparison</h3>
          <div class=\"alert {alert_class} fs-5\">{html.escape(message)}</div>
          <div class=\"row g-4 mb-3\">{cards_html}</div>
          <div class=\"small text-muted\">{params_html}</div>
        </div>
      </body>
    </html>
    """
    out_path = out_root / "report.html"
    out_path.write_text(html_doc, encoding="utf-8")
    return out_path
