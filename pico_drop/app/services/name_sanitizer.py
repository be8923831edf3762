import regex

FALLBACK_NAME = "unnamed"

# Unicode Alphabetic: letters plus Nl numerals and combining vowel signs
ALPHABETIC = regex.compile(r"\p{Alphabetic}")


def sanitize_name(raw: str, keep_digits: bool = False) -> str:
    """Turn an untrusted filename into one safe to quote in a header.

    Alphabetic characters and underscores are kept. A dot is kept unless it
    follows another dot. Anything else collapses into a single underscore,
    and nothing but a kept character may start the name. Digits are replaced
    too unless ``keep_digits`` is set.
    """
    result = []
    for c in raw:
        if c == "_" or ALPHABETIC.match(c) or (keep_digits and c.isdecimal()):
            result.append(c)
        elif result:
            last = result[-1]
            if c == "." and last != ".":
                result.append(c)
            elif last != "_":
                result.append("_")

    return "".join(result) or FALLBACK_NAME
