"""
Text parsers.

Turn OCR output, speech transcripts and scraped HTML into numbers, prize
lists and tirages. Pure functions only; no I/O.
"""

from lotoquine.parsers.number_tokens import NumberScan, extract_card_numbers, extract_numbers
from lotoquine.parsers.prize_list import PrizeParse, parse_prize_list
from lotoquine.parsers.spoken_numbers import number_to_french, parse_spoken_numbers
from lotoquine.parsers.tirage_listing import find_prizes_image_url, find_todays_tirage, parse_tirages

__all__ = [
    "NumberScan",
    "PrizeParse",
    "extract_card_numbers",
    "extract_numbers",
    "find_prizes_image_url",
    "find_todays_tirage",
    "number_to_french",
    "parse_prize_list",
    "parse_spoken_numbers",
    "parse_tirages",
]
