import unicodedata

import pytest

from khatt.errors import ResourceUnavailableError
from khatt.model import FeatureRange, ShapedGlyph
from khatt.numbers import END_OF_AYA
from khatt.settings import MushafLayout, Settings
from khatt.shaper import Outline
from khatt.text import QuranText

ADVANCE = 100
SPACE = 60
# Added to a glyph advance per unit of cv01 or cv02.
STRETCH = 5

BASMALA = "بِسْمِ ٱللَّهِ ٱلرَّحْمَٰنِ ٱلرَّحِيمِ"

PAGES = [
    [
        "سُورَةُ ٱلْفَاتِحَةِ",
        "بِسْمِ ٱللَّهِ ٱلرَّحْمَٰنِ ٱلرَّحِيمِ ۝١",
        "ٱلْحَمْدُ لِلَّهِ رَبِّ ٱلْعَٰلَمِينَ ۝٢",
    ],
    [
        "سُورَةُ ٱلْبَقَرَةِ",
        BASMALA,
        "الٓمٓ ۝١ ذَٰلِكَ ٱلْكِتَٰبُ لَا رَيْبَ فِيهِ",
    ],
    [
        "ٱلرَّحْمَٰنِ ٱلرَّحِيمِ ۝٣ مَٰلِكِ يَوْمِ ٱلدِّينِ ۝٤",
        "إِيَّاكَ نَعْبُدُ وَإِيَّاكَ نَسْتَعِينُ ۝٥",
        "ٱهْدِنَا ٱلصِّرَٰطَ ٱلْمُسْتَقِيمَ ۝٦",
    ],
    [
        "إِنَّ ٱلَّذِينَ عِندَ رَبِّكَ لَا يَسْتَكْبِرُونَ عَنْ عِبَادَتِهِۦ",
        "وَيُسَبِّحُونَهُۥ وَلَهُۥ يَسْجُدُونَ۩ ۝٢٠٦",
        "سُورَةُ ٱلْأَنفَالِ",
        BASMALA,
    ],
    [
        "يَسْـَٔلُونَكَ عَنِ ٱلْأَنفَالِ قُلِ ٱلْأَنفَالُ لِلَّهِ وَٱلرَّسُولِ",
        "فَٱتَّقُوا۟ ٱللَّهَ وَأَصْلِحُوا۟ ذَاتَ بَيْنِكُمْ",
    ],
    [
        "وَأَطِيعُوا۟ ٱللَّهَ وَرَسُولَهُۥٓ إِن كُنتُم مُّؤْمِنِينَ ۝١",
    ],
]


def square(x, y, size):
    return [
        ("moveTo", ((x, y),)),
        ("lineTo", ((x + size, y),)),
        ("lineTo", ((x + size, y + size),)),
        ("lineTo", ((x, y + size),)),
        ("closePath", ()),
    ]


class FakeShaper:
    """Shaper stand-in: one glyph per character with fixed advances, glyph
    ids are codepoints. cv01 and cv02 widen the glyphs they apply to."""

    def __init__(self, stretch=STRETCH):
        self.stretch = stretch
        self.closed = False
        self.shaped = 0
        self.cleared = 0

    def advance(self, char):
        if char == " ":
            return SPACE
        if unicodedata.category(char) == "Mn":
            return 0
        return ADVANCE

    def shape(self, text, features=()):
        if self.closed:
            raise ResourceUnavailableError("Shaper is closed")
        self.shaped += 1

        ranges = [FeatureRange(*f) for f in features]
        glyphs = []
        for i, char in enumerate(text):
            advance = self.advance(char)
            if advance and char != " ":
                for feature in ranges:
                    end = len(text) if feature.end < 0 else feature.end
                    if feature.tag in ("cv01", "cv02") and \
                       feature.start <= i < end:
                        advance += self.stretch * feature.value
            glyphs.append(ShapedGlyph(ord(char), i, advance, 0, 0, 0))
        # Visual order.
        return list(reversed(glyphs))

    def width(self, text, features=()):
        return sum(g.x_advance for g in self.shape(text, features))

    @property
    def space_width(self):
        return SPACE

    def outline(self, glyph_id):
        char = chr(glyph_id)
        if char == " ":
            return Outline(())
        if char == END_OF_AYA:
            commands = []
            for i in range(16):
                commands.extend(square(i * 10, 0, 10))
            return Outline(commands, 0, 160)
        if unicodedata.category(char) == "Mn":
            return Outline(square(20, 600, 40), 600, 640)
        return Outline(square(10, 0, 80), -100, 500)

    def clear_cache(self):
        self.cleared += 1

    def close(self):
        self.closed = True


@pytest.fixture
def shaper():
    return FakeShaper()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def quran_text():
    return QuranText(PAGES, MushafLayout.NEW_MADINAH)
