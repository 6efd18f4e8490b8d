from __future__ import annotations

import logging


logger = logging.getLogger(__name__)


def attach_link(
    canvas,
    *,
    x: float,
    y: float,
    width: float,
    height: float,
    url: str,
) -> bool:
    """Add a URI link annotation covering ``[x, y, x + width, y + height]``.

    The annotation is appended to the current page's /Annots array (reportlab
    creates the array on first use). Failures are logged and ignored.
    """
    target = str(url or '').strip()
    if not target or width <= 0 or height <= 0:
        return False
    try:
        canvas.linkURL(
            target,
            (float(x), float(y), float(x + width), float(y + height)),
            relative=0,
            thickness=0,
        )
    except Exception as exc:
        logger.debug('Failed to insert PDF link annotation for %s: %s', target, exc)
        return False
    return True
