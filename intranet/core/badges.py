"""
Identity badge PDF.

Rendered synchronously with ReportLab into memory; one card-sized page.
"""

import io
import time
from typing import Optional

from reportlab.lib.pagesizes import landscape
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from intranet.apps.auth.models import User
from intranet.utils.metrics import badge_render_seconds

BADGE_SIZE = landscape((54 * mm, 86 * mm))
MARGIN = 6 * mm


def render_badge(
    user: User,
    department_name: Optional[str] = None,
    site_name: str = "Intranet",
    color: str = "#3788d8",
) -> bytes:
    """Return the PDF bytes of a badge for `user`."""
    started = time.perf_counter()
    width, height = BADGE_SIZE
    buffer = io.BytesIO()

    c = canvas.Canvas(buffer, pagesize=BADGE_SIZE)
    c.setTitle(f"Badge - {user.name}")

    # Header band
    c.setFillColor(color)
    c.rect(0, height - 12 * mm, width, 12 * mm, stroke=0, fill=1)
    c.setFillColor("#ffffff")
    c.setFont("Helvetica-Bold", 10)
    c.drawString(MARGIN, height - 8 * mm, site_name)

    c.setFillColor("#000000")
    y_position = height - 20 * mm
    c.setFont("Helvetica-Bold", 12)
    for line in simpleSplit(user.name, "Helvetica-Bold", 12, width - 2 * MARGIN)[:2]:
        c.drawString(MARGIN, y_position, line)
        y_position -= 5 * mm

    c.setFont("Helvetica", 9)
    for text in (user.position, department_name, user.email):
        if not text:
            continue
        for line in simpleSplit(text, "Helvetica", 9, width - 2 * MARGIN)[:1]:
            c.drawString(MARGIN, y_position, line)
            y_position -= 4.5 * mm

    c.setFont("Helvetica", 6)
    c.drawString(MARGIN, 4 * mm, f"ID {user.id}")

    c.showPage()
    c.save()

    badge_render_seconds.observe(time.perf_counter() - started)
    return buffer.getvalue()
