from datetime import UTC, datetime

from rebalancer.exceptions import InvalidTimestampError

# XML books carry an explicit offset; SQLite books store naive UTC.
GNUCASH_DT_FORMAT = "%Y-%m-%d %H:%M:%S %z"
GNUCASH_UTC_DT_FORMAT = "%Y-%m-%d %H:%M:%S"
GNUCASH_LEGACY_UTC_DT_FORMAT = "%Y%m%d%H%M%S"


def parse_gnucash_timestamp(text: str) -> datetime:
    """
    Parse a timestamp as GnuCash writes it.

    Accepts:
        '2019-12-11 12:00:00 -0500'  (XML, explicit offset)
        '2019-12-11 17:00:00'        (SQLite, UTC)
        '20191211170000'             (older SQLite books, UTC)

    Returns:
        Timezone-aware datetime

    Raises:
        InvalidTimestampError: if the text matches none of these forms
    """
    text = text.strip()
    try:
        return datetime.strptime(text, GNUCASH_DT_FORMAT)
    except ValueError:
        pass

    for fmt in (GNUCASH_UTC_DT_FORMAT, GNUCASH_LEGACY_UTC_DT_FORMAT):
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=UTC)
        except ValueError:
            continue

    raise InvalidTimestampError(f"Unrecognized GnuCash timestamp: {text!r}")
