import logging
import os
import tempfile

from PIL import Image, ImageDraw, ImageFont

from . import utils
from .exceptions import RenderError

logger = logging.getLogger(__name__)

IMAGE_SIZE = (800, 600)
TITLE_COLOR = (0, 100, 200)
TEXT_COLOR = (0, 0, 0)


def _load_fonts():
    try:
        return ImageFont.truetype("DejaVuSans.ttf", 28), ImageFont.truetype("DejaVuSans.ttf", 20)
    except OSError:
        return ImageFont.load_default(), ImageFont.load_default()


def _centered(draw, y, text, font, fill):
    width = draw.textlength(text, font=font)
    draw.text(((IMAGE_SIZE[0] - width) / 2, y), text, fill=fill, font=font)


def format_gdp(value):
    return f"${value or 0:,.2f}"


def summary_lines(top_countries):
    return [
        f"{rank}. {c.name} - {format_gdp(c.estimated_gdp)}"
        for rank, c in enumerate(top_countries, start=1)
    ]


def generate_summary_image(total_countries, top_countries, timestamp, path=None):
    """
    Render the refresh summary PNG: title, total count, top countries by
    estimated GDP and the refresh time.

    Written to a temporary file beside the target, then moved into place.
    Raises RenderError on any failure.
    """
    try:
        path = path or utils.get_summary_image_path()
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)

        img = Image.new("RGB", IMAGE_SIZE, color="white")
        draw = ImageDraw.Draw(img)
        font_title, font_body = _load_fonts()

        _centered(draw, 50, "Countries Summary", font_title, TITLE_COLOR)
        _centered(draw, 110, f"Total Countries: {total_countries}", font_body, TEXT_COLOR)
        draw.text((100, 170), "Top 5 Countries by Estimated GDP:", fill=TEXT_COLOR, font=font_body)

        y = 210
        lines = summary_lines(top_countries)
        if not lines:
            draw.text((120, y), "No GDP data available.", fill="gray", font=font_body)
        for line in lines:
            draw.text((120, y), line, fill=TEXT_COLOR, font=font_body)
            y += 40

        stamp = timestamp.strftime("%Y-%m-%d %H:%M:%S UTC")
        _centered(draw, IMAGE_SIZE[1] - 60, f"Last Refresh: {stamp}", font_body, TITLE_COLOR)

        fd, tmp_path = tempfile.mkstemp(suffix=".png", dir=directory)
        try:
            with os.fdopen(fd, "wb") as fh:
                img.save(fh, "PNG")
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
    except (OSError, ValueError) as exc:
        raise RenderError(f"Failed to generate summary image: {exc}") from exc

    if not os.path.isfile(path) or os.path.getsize(path) == 0:
        raise RenderError(f"Summary image missing or empty at {path}")

    logger.info("Summary image written to %s", path)
    return path
