import argparse
import logging
import sys

from .errors import KhattError
from .pdf import write_pdf
from .render import PageRenderer
from .settings import JUST_STYLE_NAMES, LAYOUT_NAMES, MushafLayout, Settings
from .shaper import Shaper
from .text import QuranText, read_data

logger = logging.getLogger("khatt")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="khatt",
            description="Quran mushaf typesetter.")
    parser.add_argument("textfile", metavar="TEXTFILE",
            help="JSON file with the lines of each page")
    parser.add_argument("font", metavar="FONT",
            help="Font file to shape the text with")
    parser.add_argument("outfile", metavar="OUTFILE",
            help="Output PDF file")
    parser.add_argument("--layout", "-l", choices=sorted(LAYOUT_NAMES),
            default="newMadinah",
            help="Mushaf layout of the text (Default: newMadinah)")
    parser.add_argument("--pages", "-p", metavar="N", nargs="*", type=int,
            help="Which 1-based pages to process (Default: all)")
    parser.add_argument("--style", "-s", choices=sorted(JUST_STYLE_NAMES),
            default="xscale",
            help="Justification style (Default: xscale)")
    parser.add_argument("--tajweed", "-t", action="store_true",
            help="Colour the text with tajweed rules")
    parser.add_argument("--verse-numbers", choices=("arabic", "english"),
            default="arabic",
            help="Digits of the verse numbers (Default: arabic)")
    parser.add_argument("--width", "-w", type=float, default=510,
            help="Page width in points (Default: 510)")
    parser.add_argument("--font-scale", type=float, default=1,
            help="Font size relative to the page width (Default: 1)")
    parser.add_argument("--quite", "-q", action="store_true",
            help="Don’t print normal messages")
    parser.add_argument("--verbose", "-v", action="store_true",
            help="Print verbose messages")
    return parser.parse_args(argv)


def make_settings(args):
    settings = Settings()
    return settings.update(font_path=args.font,
                           text_path=args.textfile,
                           layout=MushafLayout.from_name(args.layout),
                           just_style=JUST_STYLE_NAMES[args.style],
                           tajweed=args.tajweed,
                           verse_numbers=args.verse_numbers,
                           page_width=args.width,
                           font_scale=args.font_scale)


def main(argv=None):
    args = parse_args(argv)

    logging.basicConfig(format="%(asctime)s - %(message)s")
    logger.setLevel(logging.INFO)
    if args.verbose:
        logger.setLevel(logging.DEBUG)
    if args.quite:
        logger.setLevel(logging.ERROR)

    try:
        settings = make_settings(args)
        quran_text = QuranText(read_data(settings.text_path), settings.layout)
        pages = args.pages or range(1, quran_text.page_count + 1)
        for number in pages:
            quran_text.page(number - 1)

        with Shaper(settings.font_path) as shaper:
            renderer = PageRenderer(shaper, quran_text)
            count = write_pdf(args.outfile, renderer,
                              [n - 1 for n in pages], settings)
    except KhattError as e:
        logger.error("%s", e)
        return 1

    logger.info("Wrote %d pages to %s", count, args.outfile)
    return 0


if __name__ == "__main__":
    sys.exit(main())
