"""Lookup tables for Unicode confusable detection.

Single-character mappings from Unicode TR39 confusables.txt whose prototype is
a Latin letter or digit, lowercased. Regenerate the explicit entries with
``spoofguard generate-table confusables.txt``.
"""

# Characters removed before comparison. Ranges are inclusive.
IGNORABLE_CHARACTERS = frozenset(
    {
        "\u00ad",  # SOFT HYPHEN
        "\u034f",  # COMBINING GRAPHEME JOINER
        "\u061c",  # ARABIC LETTER MARK
        "\u115f",  # HANGUL CHOSEONG FILLER
        "\u1160",  # HANGUL JUNGSEONG FILLER
        "\u17b4",  # KHMER VOWEL INHERENT AQ
        "\u17b5",  # KHMER VOWEL INHERENT AA
        "\u180e",  # MONGOLIAN VOWEL SEPARATOR
        "\u200b",  # ZERO WIDTH SPACE
        "\u200c",  # ZERO WIDTH NON-JOINER
        "\u200d",  # ZERO WIDTH JOINER
        "\u200e",  # LEFT-TO-RIGHT MARK
        "\u200f",  # RIGHT-TO-LEFT MARK
        "\u202a",  # LEFT-TO-RIGHT EMBEDDING
        "\u202b",  # RIGHT-TO-LEFT EMBEDDING
        "\u202c",  # POP DIRECTIONAL FORMATTING
        "\u202d",  # LEFT-TO-RIGHT OVERRIDE
        "\u202e",  # RIGHT-TO-LEFT OVERRIDE
        "\u2060",  # WORD JOINER
        "\u2061",  # FUNCTION APPLICATION
        "\u2062",  # INVISIBLE TIMES
        "\u2063",  # INVISIBLE SEPARATOR
        "\u2064",  # INVISIBLE PLUS
        "\u2066",  # LEFT-TO-RIGHT ISOLATE
        "\u2067",  # RIGHT-TO-LEFT ISOLATE
        "\u2068",  # FIRST STRONG ISOLATE
        "\u2069",  # POP DIRECTIONAL ISOLATE
        "\u3164",  # HANGUL FILLER
        "\ufeff",  # ZERO WIDTH NO-BREAK SPACE (BOM)
        "\uffa0",  # HALFWIDTH HANGUL FILLER
    }
)

IGNORABLE_RANGES: tuple[tuple[int, int], ...] = (
    (0xFE00, 0xFE0F),  # VARIATION SELECTOR-1..16
    (0xE0000, 0xE0FFF),  # TAG characters and VARIATION SELECTOR SUPPLEMENT
)

# Zero-width characters used when generating insertion attacks.
INVISIBLE_INSERTIONS: tuple[str, ...] = ("\u200b", "\u200c", "\u200d")

# TR39 prototypes of ASCII characters that differ from their lowercase form.
ASCII_PROTOTYPES = {
    "I": "l",
    "0": "o",
    "1": "l",
}

# Blocks whose characters fold onto ASCII letters/digits under NFKC. Each
# assigned code point maps to the TR39 prototype of its NFKC fold.
COMPATIBILITY_RANGES: tuple[tuple[int, int], ...] = (
    (0xFF10, 0xFF19),  # FULLWIDTH DIGIT ZERO..NINE
    (0xFF21, 0xFF3A),  # FULLWIDTH LATIN CAPITAL LETTER A..Z
    (0xFF41, 0xFF5A),  # FULLWIDTH LATIN SMALL LETTER A..Z
    (0x1D400, 0x1D6A3),  # MATHEMATICAL ALPHANUMERIC SYMBOLS (Latin)
    (0x1D7CE, 0x1D7FF),  # MATHEMATICAL DIGITS
)

# (code point, prototype, name)
CONFUSABLE_ENTRIES: tuple[tuple[int, str, str], ...] = (
    # Latin Extended-A / B
    (0x0131, "i", "LATIN SMALL LETTER DOTLESS I"),
    (0x017F, "f", "LATIN SMALL LETTER LONG S"),
    (0x0185, "b", "LATIN SMALL LETTER TONE SIX"),
    (0x01B7, "3", "LATIN CAPITAL LETTER EZH"),
    (0x01BC, "5", "LATIN CAPITAL LETTER TONE FIVE"),
    (0x01C0, "l", "LATIN LETTER DENTAL CLICK"),
    (0x021C, "3", "LATIN CAPITAL LETTER YOGH"),
    # IPA Extensions
    (0x0251, "a", "LATIN SMALL LETTER ALPHA"),
    (0x0261, "g", "LATIN SMALL LETTER SCRIPT G"),
    (0x0269, "i", "LATIN SMALL LETTER IOTA"),
    (0x026A, "i", "LATIN LETTER SMALL CAPITAL I"),
    (0x028B, "u", "LATIN SMALL LETTER V WITH HOOK"),
    # Greek and Coptic
    (0x0391, "a", "GREEK CAPITAL LETTER ALPHA"),
    (0x0392, "b", "GREEK CAPITAL LETTER BETA"),
    (0x0395, "e", "GREEK CAPITAL LETTER EPSILON"),
    (0x0396, "z", "GREEK CAPITAL LETTER ZETA"),
    (0x0397, "h", "GREEK CAPITAL LETTER ETA"),
    (0x0399, "l", "GREEK CAPITAL LETTER IOTA"),
    (0x039A, "k", "GREEK CAPITAL LETTER KAPPA"),
    (0x039C, "m", "GREEK CAPITAL LETTER MU"),
    (0x039D, "n", "GREEK CAPITAL LETTER NU"),
    (0x039F, "o", "GREEK CAPITAL LETTER OMICRON"),
    (0x03A1, "p", "GREEK CAPITAL LETTER RHO"),
    (0x03A4, "t", "GREEK CAPITAL LETTER TAU"),
    (0x03A5, "y", "GREEK CAPITAL LETTER UPSILON"),
    (0x03A7, "x", "GREEK CAPITAL LETTER CHI"),
    (0x03B1, "a", "GREEK SMALL LETTER ALPHA"),
    (0x03B3, "y", "GREEK SMALL LETTER GAMMA"),
    (0x03B9, "i", "GREEK SMALL LETTER IOTA"),
    (0x03BA, "k", "GREEK SMALL LETTER KAPPA"),
    (0x03BD, "v", "GREEK SMALL LETTER NU"),
    (0x03BF, "o", "GREEK SMALL LETTER OMICRON"),
    (0x03C1, "p", "GREEK SMALL LETTER RHO"),
    (0x03F2, "c", "GREEK LUNATE SIGMA SYMBOL"),
    (0x03F3, "j", "GREEK LETTER YOT"),
    (0x03F9, "c", "GREEK CAPITAL LUNATE SIGMA SYMBOL"),
    # Cyrillic
    (0x0405, "s", "CYRILLIC CAPITAL LETTER DZE"),
    (0x0406, "l", "CYRILLIC CAPITAL LETTER BYELORUSSIAN-UKRAINIAN I"),
    (0x0408, "j", "CYRILLIC CAPITAL LETTER JE"),
    (0x0410, "a", "CYRILLIC CAPITAL LETTER A"),
    (0x0412, "b", "CYRILLIC CAPITAL LETTER VE"),
    (0x0415, "e", "CYRILLIC CAPITAL LETTER IE"),
    (0x0417, "3", "CYRILLIC CAPITAL LETTER ZE"),
    (0x041A, "k", "CYRILLIC CAPITAL LETTER KA"),
    (0x041C, "m", "CYRILLIC CAPITAL LETTER EM"),
    (0x041D, "h", "CYRILLIC CAPITAL LETTER EN"),
    (0x041E, "o", "CYRILLIC CAPITAL LETTER O"),
    (0x0420, "p", "CYRILLIC CAPITAL LETTER ER"),
    (0x0421, "c", "CYRILLIC CAPITAL LETTER ES"),
    (0x0422, "t", "CYRILLIC CAPITAL LETTER TE"),
    (0x0425, "x", "CYRILLIC CAPITAL LETTER HA"),
    (0x0430, "a", "CYRILLIC SMALL LETTER A"),
    (0x0431, "6", "CYRILLIC SMALL LETTER BE"),
    (0x0435, "e", "CYRILLIC SMALL LETTER IE"),
    (0x043E, "o", "CYRILLIC SMALL LETTER O"),
    (0x0440, "p", "CYRILLIC SMALL LETTER ER"),
    (0x0441, "c", "CYRILLIC SMALL LETTER ES"),
    (0x0443, "y", "CYRILLIC SMALL LETTER U"),
    (0x0445, "x", "CYRILLIC SMALL LETTER HA"),
    (0x0455, "s", "CYRILLIC SMALL LETTER DZE"),
    (0x0456, "i", "CYRILLIC SMALL LETTER BYELORUSSIAN-UKRAINIAN I"),
    (0x0458, "j", "CYRILLIC SMALL LETTER JE"),
    (0x04AE, "y", "CYRILLIC CAPITAL LETTER STRAIGHT U"),
    (0x04BB, "h", "CYRILLIC SMALL LETTER SHHA"),
    (0x04C0, "l", "CYRILLIC LETTER PALOCHKA"),
    (0x04CF, "l", "CYRILLIC SMALL LETTER PALOCHKA"),
    (0x0501, "d", "CYRILLIC SMALL LETTER KOMI DE"),
    (0x051A, "q", "CYRILLIC CAPITAL LETTER QA"),
    (0x051B, "q", "CYRILLIC SMALL LETTER QA"),
    (0x051C, "w", "CYRILLIC CAPITAL LETTER WE"),
    (0x051D, "w", "CYRILLIC SMALL LETTER WE"),
    # Armenian
    (0x054D, "u", "ARMENIAN CAPITAL LETTER SEH"),
    (0x0555, "o", "ARMENIAN CAPITAL LETTER OH"),
    (0x0561, "w", "ARMENIAN SMALL LETTER AYB"),
    (0x0566, "q", "ARMENIAN SMALL LETTER ZA"),
    (0x0570, "h", "ARMENIAN SMALL LETTER HO"),
    (0x0578, "n", "ARMENIAN SMALL LETTER VO"),
    (0x057D, "u", "ARMENIAN SMALL LETTER SEH"),
    (0x0581, "g", "ARMENIAN SMALL LETTER CO"),
    (0x0585, "o", "ARMENIAN SMALL LETTER OH"),
    # Cherokee
    (0x13A0, "d", "CHEROKEE LETTER A"),
    (0x13A2, "t", "CHEROKEE LETTER I"),
    (0x13AA, "a", "CHEROKEE LETTER GO"),
    (0x13AB, "j", "CHEROKEE LETTER GU"),
    (0x13AC, "e", "CHEROKEE LETTER GV"),
    (0x13B3, "w", "CHEROKEE LETTER LA"),
    (0x13B7, "m", "CHEROKEE LETTER LU"),
    (0x13BB, "h", "CHEROKEE LETTER MI"),
    (0x13C0, "g", "CHEROKEE LETTER NAH"),
    (0x13C3, "z", "CHEROKEE LETTER NO"),
    (0x13D9, "v", "CHEROKEE LETTER DO"),
    (0x13DA, "s", "CHEROKEE LETTER DU"),
    (0x13DE, "l", "CHEROKEE LETTER TLE"),
    (0x13DF, "c", "CHEROKEE LETTER TLI"),
    (0x13E2, "p", "CHEROKEE LETTER TLV"),
    (0x13E6, "k", "CHEROKEE LETTER TSO"),
    (0x13F4, "b", "CHEROKEE LETTER YV"),
    # Phonetic Extensions (small capitals, supplemental)
    (0x1D00, "a", "LATIN LETTER SMALL CAPITAL A"),
    (0x1D04, "c", "LATIN LETTER SMALL CAPITAL C"),
    (0x1D05, "d", "LATIN LETTER SMALL CAPITAL D"),
    (0x1D07, "e", "LATIN LETTER SMALL CAPITAL E"),
    (0x1D0A, "j", "LATIN LETTER SMALL CAPITAL J"),
    (0x1D0B, "k", "LATIN LETTER SMALL CAPITAL K"),
    (0x1D0D, "m", "LATIN LETTER SMALL CAPITAL M"),
    (0x1D0F, "o", "LATIN LETTER SMALL CAPITAL O"),
    (0x1D18, "p", "LATIN LETTER SMALL CAPITAL P"),
    (0x1D1B, "t", "LATIN LETTER SMALL CAPITAL T"),
    (0x1D1C, "u", "LATIN LETTER SMALL CAPITAL U"),
    (0x1D20, "v", "LATIN LETTER SMALL CAPITAL V"),
    (0x1D21, "w", "LATIN LETTER SMALL CAPITAL W"),
    (0x1D22, "z", "LATIN LETTER SMALL CAPITAL Z"),
    # Letterlike Symbols
    (0x2102, "c", "DOUBLE-STRUCK CAPITAL C"),
    (0x210A, "g", "SCRIPT SMALL G"),
    (0x210B, "h", "SCRIPT CAPITAL H"),
    (0x210C, "h", "BLACK-LETTER CAPITAL H"),
    (0x210D, "h", "DOUBLE-STRUCK CAPITAL H"),
    (0x210E, "h", "PLANCK CONSTANT"),
    (0x2110, "l", "SCRIPT CAPITAL I"),
    (0x2111, "l", "BLACK-LETTER CAPITAL I"),
    (0x2112, "l", "SCRIPT CAPITAL L"),
    (0x2113, "l", "SCRIPT SMALL L"),
    (0x2115, "n", "DOUBLE-STRUCK CAPITAL N"),
    (0x2119, "p", "DOUBLE-STRUCK CAPITAL P"),
    (0x211A, "q", "DOUBLE-STRUCK CAPITAL Q"),
    (0x211B, "r", "SCRIPT CAPITAL R"),
    (0x211C, "r", "BLACK-LETTER CAPITAL R"),
    (0x211D, "r", "DOUBLE-STRUCK CAPITAL R"),
    (0x2124, "z", "DOUBLE-STRUCK CAPITAL Z"),
    (0x2128, "z", "BLACK-LETTER CAPITAL Z"),
    (0x212A, "k", "KELVIN SIGN"),
    (0x212C, "b", "SCRIPT CAPITAL B"),
    (0x212D, "c", "BLACK-LETTER CAPITAL C"),
    (0x212E, "e", "ESTIMATED SYMBOL"),
    (0x212F, "e", "SCRIPT SMALL E"),
    (0x2130, "e", "SCRIPT CAPITAL E"),
    (0x2131, "f", "SCRIPT CAPITAL F"),
    (0x2133, "m", "SCRIPT CAPITAL M"),
    (0x2134, "o", "SCRIPT SMALL O"),
    (0x2139, "i", "INFORMATION SOURCE"),
    # Number Forms
    (0x2160, "l", "ROMAN NUMERAL ONE"),
    (0x2164, "v", "ROMAN NUMERAL FIVE"),
    (0x2169, "x", "ROMAN NUMERAL TEN"),
    (0x216C, "l", "ROMAN NUMERAL FIFTY"),
    (0x216D, "c", "ROMAN NUMERAL ONE HUNDRED"),
    (0x216E, "d", "ROMAN NUMERAL FIVE HUNDRED"),
    (0x216F, "m", "ROMAN NUMERAL ONE THOUSAND"),
    (0x2170, "i", "SMALL ROMAN NUMERAL ONE"),
    (0x2174, "v", "SMALL ROMAN NUMERAL FIVE"),
    (0x2179, "x", "SMALL ROMAN NUMERAL TEN"),
    (0x217C, "l", "SMALL ROMAN NUMERAL FIFTY"),
    (0x217D, "c", "SMALL ROMAN NUMERAL ONE HUNDRED"),
    (0x217E, "d", "SMALL ROMAN NUMERAL FIVE HUNDRED"),
    (0x217F, "m", "SMALL ROMAN NUMERAL ONE THOUSAND"),
    # Latin Extended-D
    (0xA731, "s", "LATIN LETTER SMALL CAPITAL S"),
)
