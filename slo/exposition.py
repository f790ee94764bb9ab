"""Parser for Prometheus text exposition into a flat metric map."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# curl -v marks response/request lines with these prefixes
_CURL_PREFIXES = ("< ", "> ")
_METRIC_NAME = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")


def parse_exposition(text: str) -> dict[str, float]:
    """Parse metrics exposition text.

    Supports sample lines like::

        metric_name 123
        metric_name{label="value",...} 123 [timestamp]

    Comment and blank lines are ignored. A line that cannot be parsed is
    skipped on its own. Labelled series are stored under their full key
    and also summed into the bare metric name, so a definition may track
    either one series or the whole family. An unlabelled sample adds into
    the same bare-name total, so the result does not depend on line order.

    Args:
        text: Raw exposition text (raw ``curl -v`` output is accepted)

    Returns:
        Mapping of series identity to value (empty for metric-free input)
    """
    out: dict[str, float] = {}
    skipped = 0

    for raw in text.splitlines():
        line = _strip_curl_prefix(raw.strip())
        if not line or line.startswith("#"):
            continue

        sample = _split_sample(line)
        if sample is None:
            skipped += 1
            continue
        series, value = sample

        brace = series.find("{")
        if brace > 0:
            out[series] = value
            family = series[:brace]
            out[family] = out.get(family, 0.0) + value
            continue
        out[series] = out.get(series, 0.0) + value

    if skipped:
        logger.debug("slo.exposition.lines_skipped", extra={"skipped_lines": skipped})
    return out


def _strip_curl_prefix(line: str) -> str:
    for prefix in _CURL_PREFIXES:
        if line.startswith(prefix):
            return line[len(prefix) :].strip()
    return line


def _split_sample(line: str) -> tuple[str, float] | None:
    """Split a sample line into series identity and value."""
    if "{" in line:
        close = line.rfind("}")
        if close < 0:
            return None
        series = line[: close + 1]
        rest = line[close + 1 :].split()
    else:
        fields = line.split()
        series, rest = fields[0], fields[1:]

    family = series.split("{", 1)[0]
    if family and not _METRIC_NAME.fullmatch(family):
        return None

    # value, optionally followed by a timestamp
    if not rest or len(rest) > 2:
        return None
    try:
        return series, float(rest[0])
    except ValueError:
        return None
