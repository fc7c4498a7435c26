import csv
import io
from collections.abc import Sequence


class CsvSummaryFormatter:
    """Renders summary rows as delimited text."""

    def __init__(self, delimiter: str = ",") -> None:
        self._delimiter = delimiter

    def format(self, rows: Sequence[dict[str, object]]) -> str:
        """Return CSV text with a header row; empty string when there are no rows."""
        if not rows:
            return ""
        buf = io.StringIO()
        writer = csv.DictWriter(
            buf,
            fieldnames=list(rows[0]),
            delimiter=self._delimiter,
            lineterminator="\n",
        )
        writer.writeheader()
        writer.writerows(rows)
        return buf.getvalue()
