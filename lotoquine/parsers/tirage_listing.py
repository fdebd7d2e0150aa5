"""
Parsers for lotofiesta.fr pages.

The site is a WooCommerce shop: every tirage is a product. The listing
page carries, per product:

    <a href="https://lotofiesta.fr/produit/<slug>/"><img src="..." alt="..."></a>
    <h2 class="woocommerce-loop-product__title">TITRE – VENDREDI 26 DÉCEMBRE</h2>

Product pages carry a gallery whose images include the prize list.

Note: Web scraping is inherently fragile. Page structure may change.
"""

import re
import unicodedata
from collections.abc import Sequence
from datetime import date

from lotoquine.config import settings
from lotoquine.models.prize import Tirage

FRENCH_DAY_NAMES = ("LUNDI", "MARDI", "MERCREDI", "JEUDI", "VENDREDI", "SAMEDI", "DIMANCHE")
FRENCH_MONTH_NAMES = (
    "JANVIER",
    "FEVRIER",
    "MARS",
    "AVRIL",
    "MAI",
    "JUIN",
    "JUILLET",
    "AOUT",
    "SEPTEMBRE",
    "OCTOBRE",
    "NOVEMBRE",
    "DECEMBRE",
)

TITLE_PATTERN = re.compile(
    r'<h2[^>]*class="[^"]*woocommerce-loop-product__title[^"]*"[^>]*>([^<]+)</h2>',
    re.IGNORECASE,
)

# Title suffix: "– VENDREDI 26 DÉCEMBRE"
TITLE_DATE_PATTERN = re.compile(r"\s*[–-]\s*(\w+\s+\d+\s+\w+)\s*$")

# Keyword in the file name only: the host itself contains "lot"
_PRIZE_FILE = r'[^"]*/[^"/]*(?:lots|liste|lot)[^"/]*\.(?:jpg|jpeg|png|webp)'

# Ordered from most to least specific, full-size images first
PRIZE_IMAGE_PATTERNS = (
    re.compile(rf'data-large_image="({_PRIZE_FILE})"', re.IGNORECASE),
    re.compile(rf'<img[^>]*src="({_PRIZE_FILE})"[^>]*>', re.IGNORECASE),
    re.compile(rf'<a[^>]*href="({_PRIZE_FILE})"[^>]*>', re.IGNORECASE),
)

GALLERY_IMAGE_PATTERN = re.compile(
    r'<div[^>]*class="[^"]*woocommerce-product-gallery[^"]*"[^>]*>.*?<img[^>]*src="([^"]+)"[^>]*>',
    re.IGNORECASE | re.DOTALL,
)

LARGE_IMAGE_PATTERN = re.compile(r'data-large_image="([^"]+)"', re.IGNORECASE)


def _product_pattern(base_url: str) -> re.Pattern[str]:
    host = re.escape(re.sub(r"^https?://", "", base_url.rstrip("/")))
    return re.compile(
        rf'<a[^>]*href="(https?://{host}/produit/[^"]+)"[^>]*>\s*'  # product URL
        r'<img[^>]*src="([^"]+)"[^>]*alt="([^"]*)"[^>]*>',  # poster and alt text
        re.IGNORECASE,
    )


def _fold(text: str) -> str:
    """Uppercase without accents: "Décembre" → "DECEMBRE"."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).upper()


def parse_tirages(html: str, base_url: str | None = None) -> list[Tirage]:
    """
    Parse tirages from the listing page.

    Products and titles are paired by position; a product without a
    title falls back to its image alt text.

    Args:
        html: Raw HTML of the listing page
        base_url: Site root, defaults to the configured one

    Returns:
        Tirages in page order, prizes not yet loaded
    """
    base_url = (base_url or settings.lotofiesta_base_url).rstrip("/")
    products = _product_pattern(base_url).findall(html)
    titles = [title.strip() for title in TITLE_PATTERN.findall(html)]

    tirages: list[Tirage] = []
    seen_ids: set[str] = set()

    for index, (url, image_url, alt) in enumerate(products):
        full_title = titles[index] if index < len(titles) else alt.strip()

        date_match = TITLE_DATE_PATTERN.search(full_title)
        event_date = date_match.group(1).strip() if date_match else ""
        title = full_title[: date_match.start()].strip() if date_match else full_title

        tirage_id = url.rstrip("/").rsplit("/produit/", 1)[-1]
        # The same product can be linked twice (poster and button)
        if tirage_id in seen_ids:
            continue
        seen_ids.add(tirage_id)

        tirages.append(
            Tirage(
                id=tirage_id,
                title=title,
                date=event_date,
                url=url,
                image_url=image_url,
            )
        )

    return tirages


def find_prizes_image_url(html: str) -> str | None:
    """
    Locate the prize list image on a product page.

    Images named after the prize list win. Otherwise the second large
    gallery image is used, the first one usually being the poster, and
    as a last resort the first gallery image.
    """
    for pattern in PRIZE_IMAGE_PATTERNS:
        match = pattern.search(html)
        if match:
            return match.group(1)

    large_images = LARGE_IMAGE_PATTERN.findall(html)
    if len(large_images) > 1:
        return large_images[1]

    gallery = GALLERY_IMAGE_PATTERN.search(html)
    return gallery.group(1) if gallery else None


def find_todays_tirage(tirages: Sequence[Tirage], today: date | None = None) -> Tirage | None:
    """
    Pick the tirage held today, matching day name, day number and month.

    Returns:
        Today's tirage, else the first listed one, None when empty.
    """
    if not tirages:
        return None

    today = today or date.today()
    day_name = FRENCH_DAY_NAMES[today.weekday()]
    month_name = FRENCH_MONTH_NAMES[today.month - 1]
    day_pattern = re.compile(rf"(?<!\d)0?{today.day}(?!\d)")

    for tirage in tirages:
        folded = _fold(tirage.date)
        if day_name in folded and month_name in folded and day_pattern.search(folded):
            return tirage

    return tirages[0]
