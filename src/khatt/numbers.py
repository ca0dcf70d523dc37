ARABIC_DIGITS = "٠١٢٣٤٥٦٧٨٩"
END_OF_AYA = "۝"


def format_number(number):
    """Format number to Arabic-Indic digits."""

    number = int(number)
    return "".join([chr(ord(c) + 0x0630) for c in str(number)])


def to_western_digits(text):
    """Replaces Arabic-Indic digits with ASCII ones, leaving other text."""

    return "".join([str(ARABIC_DIGITS.index(c)) if c in ARABIC_DIGITS else c
                    for c in text])


def is_arabic_digit(char):
    return "٠" <= char <= "٩"


def verse_number_after(text, index):
    """Returns the Arabic-Indic digits following the end of aya sign at
    index."""

    digits = ""
    for char in text[index + 1:]:
        if not is_arabic_digit(char):
            break
        digits += char
    return digits
