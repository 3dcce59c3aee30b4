from collections import namedtuple

Quote = namedtuple('Quote', ['text', 'author'])

# Order matters: the daily pick indexes into this tuple.
QUOTES = (
    Quote("Wherever you are, be all there.", "Jim Elliot"),
    Quote("The fragrance of flowers spreads only in the direction of the wind. "
          "But the goodness of a person spreads in all directions.", "Chanakya"),
    Quote("Each moment is all we need, not more.", "Mother Teresa"),
    Quote("One incense stick can change the air of a room. "
          "One focused session can transform a day.", "Unknown"),
    Quote("Silence isn’t empty, it’s full of answers.", "Zen Proverb"),
    Quote("Simplicity is the keynote of all true elegance.", "Coco Chanel"),
)


def day_index(day):
    """ISO calendar-day key, e.g. '2024-05-07'."""
    return day.isoformat()


def day_hash(day):
    return sum(int(part) for part in day_index(day).split('-'))


def select_daily_quote(day, quotes=QUOTES):
    """Same calendar day, same quote."""
    if not quotes:
        raise ValueError("Quote set is empty.")
    return quotes[day_hash(day) % len(quotes)]


def quote_to_dict(quote):
    return {'text': quote.text, 'author': quote.author}
