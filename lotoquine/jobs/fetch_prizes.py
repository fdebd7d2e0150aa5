"""
Fetch and print the prize list of a tirage.

Finds today's tirage on lotofiesta.fr (or the one given on the command
line), reads its prize list image with Google Vision and prints the
parsed lots.

    python -m lotoquine.jobs.fetch_prizes
    python -m lotoquine.jobs.fetch_prizes --list
    python -m lotoquine.jobs.fetch_prizes --tirage loto-as-muret-26-decembre
"""

import argparse
import asyncio
import logging

import httpx

from lotoquine.models.prize import Tirage
from lotoquine.ocr.google_vision import GoogleVisionClient
from lotoquine.parsers.prize_list import PrizeParse, parse_prize_list
from lotoquine.parsers.tirage_listing import find_todays_tirage
from lotoquine.scrapers.lotofiesta import create_client, download_image, fetch_prizes_image_url, fetch_tirages

logger = logging.getLogger(__name__)


async def load_tirage_prizes(
    tirage: Tirage,
    vision: GoogleVisionClient,
    client: httpx.Client,
) -> PrizeParse:
    """
    Locate, download, OCR and parse the prize list of a tirage.

    Fills `tirage.prizes_image_url` and `tirage.prizes` in place.

    Returns:
        The parse; empty when any step found nothing
    """
    image_url = fetch_prizes_image_url(tirage.url, client)
    if image_url is None:
        return PrizeParse()
    tirage.prizes_image_url = image_url

    image = download_image(image_url, client)
    if image is None:
        return PrizeParse()

    # The prize list is laid out in lines: Vision's own text keeps them
    source = await vision.annotate(image, positioned=False)
    parse = parse_prize_list(source)
    tirage.prizes = list(parse.entries)

    logger.info(
        "tirage_prizes_loaded",
        extra={
            "tirage_id": tirage.id,
            "prize_count": len(parse),
            "strategy": parse.strategy.value,
            "confidence": parse.confidence.value,
        },
    )
    return parse


async def run_fetch_prizes(tirage_id: str | None = None) -> tuple[Tirage | None, PrizeParse]:
    """
    Fetch the prize list of a tirage.

    Args:
        tirage_id: Product slug. If None, today's tirage (or the first
            listed) is used.

    Returns:
        The tirage (None when not found) and its parsed prize list
    """
    vision = GoogleVisionClient()

    with create_client() as client:
        tirages = fetch_tirages(client=client).value
        if tirage_id is None:
            tirage = find_todays_tirage(tirages)
        else:
            tirage = next((t for t in tirages if t.id == tirage_id), None)

        if tirage is None:
            logger.warning("tirage_not_found", extra={"tirage_id": tirage_id})
            return None, PrizeParse()

        return tirage, await load_tirage_prizes(tirage, vision, client)


def format_prizes(tirage: Tirage, parse: PrizeParse) -> str:
    lines = [f"{tirage.title} – {tirage.date}".strip(" –")]
    for entry in parse.entries:
        marker = " *" if entry.synthesized else ""
        lines.append(f"{entry.lot_number:>3} {entry.tier.code:<2} {entry.description}{marker}")
    if parse.gap_filled:
        lines.append("* lot not read from the image")
    return "\n".join(lines)


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Fetch the prize list of a lotofiesta.fr tirage")
    parser.add_argument(
        "--tirage",
        help="Product slug of the tirage (default: today's)",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List the tirages and exit",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.list:
        with create_client() as client:
            for tirage in fetch_tirages(client=client).value:
                print(f"{tirage.id}: {tirage.title} ({tirage.date})")
        return

    tirage, parse = asyncio.run(run_fetch_prizes(args.tirage))
    if tirage is None:
        print("Error: tirage not found")
        return
    if not parse.entries:
        print(f"No prizes read for {tirage.title}")
        return
    print(format_prizes(tirage, parse))


if __name__ == "__main__":
    main()
