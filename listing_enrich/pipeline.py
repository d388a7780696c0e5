"""
Owner enrichment pipeline - reusable for CLI and API

Reads a listing table, looks up owner info for each row still missing it,
merges non-empty results into the row and writes the table once at the end.
Rows are processed strictly in order, one lookup at a time.
"""
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

from .config import Settings
from .csv_codec import ListingTable, read_table, write_table
from .logging_utils import setup_logger
from .owner_lookup import OwnerLookupClient, Unresolved
from .rate_limit import FixedDelayRateLimiter, timed

logger = setup_logger(__name__)

OWNER_FIELDS = ("owner_name", "mailing_address")
CONTACT_FIELDS = ("emails", "phones")
ADDRESSES_SOURCE = "addresses"


class InputNotFoundError(FileNotFoundError):
    """Input table does not exist; nothing is processed or written"""


@dataclass
class EnrichmentStats:
    total: int = 0
    processed: int = 0
    updated: int = 0
    skipped_no_address: int = 0
    already_complete: int = 0
    unresolved: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def _has_value(value: Optional[str]) -> bool:
    return bool(value is not None and str(value).strip() != "")


def merge_fields_for(source: str) -> Tuple[str, ...]:
    if source == ADDRESSES_SOURCE:
        return OWNER_FIELDS + CONTACT_FIELDS
    return OWNER_FIELDS


def prepare_table(table: ListingTable, source: str) -> Tuple[str, ...]:
    """
    Make sure every column we merge into exists, and clear literal "null"
    placeholders in those columns. Returns the merge fields.
    """
    fields = merge_fields_for(source)
    if not table.headers:
        return fields
    for col in fields:
        if table.ensure_column(col):
            logger.info(f"Added missing column: {col}")
    for row in table.rows:
        for col in fields:
            if (row.get(col) or "").strip().lower() == "null":
                row[col] = ""
    return fields


def lookup_address_for(row: Dict[str, str], source: str) -> str:
    address = (row.get("address") or "").strip()
    if not address or source != ADDRESSES_SOURCE:
        return address
    city = (row.get("city") or "").strip()
    state = (row.get("state") or "").strip()
    zip_code = (row.get("zip") or "").strip()
    return f"{address}, {city}, {state} {zip_code}".strip()


def enrich_table(
    table: ListingTable,
    client: OwnerLookupClient,
    limiter: FixedDelayRateLimiter,
) -> EnrichmentStats:
    """
    Enrich rows in place

    Args:
        table: Listing table (mutated)
        client: Owner lookup client; its `source` decides address composition and merge fields
        limiter: Paces consecutive lookups

    Returns:
        EnrichmentStats. `updated` counts fields, not rows.
    """
    source = client.source
    fields = prepare_table(table, source)
    rows = table.rows
    stats = EnrichmentStats(total=len(rows))

    for i, row in enumerate(rows):
        address = lookup_address_for(row, source)
        if not address:
            logger.info(f"Skipping row {i + 1}: No address")
            stats.skipped_no_address += 1
            continue

        if all(_has_value(row.get(col)) for col in fields):
            logger.info(f"Row {i + 1}/{len(rows)}: Already has {', '.join(fields)}, skipping")
            stats.processed += 1
            stats.already_complete += 1
            continue

        logger.info(f"[{i + 1}/{len(rows)}] Processing: {address[:60]}")
        done = timed(logger, "OWNER_LOOKUP")
        listing_link = None if source == ADDRESSES_SOURCE else (row.get("listing_link") or None)
        result = client.lookup(address, listing_link)

        if isinstance(result, Unresolved):
            stats.unresolved += 1
            done(f"row={i + 1} unresolved={result.reason}")
        else:
            done(f"row={i + 1} resolved")

        for col in fields:
            value = getattr(result.info, col)
            if value:
                row[col] = value
                stats.updated += 1

        stats.processed += 1

        if i < len(rows) - 1:
            limiter.pause()

    return stats


def log_export_sanity(table: ListingTable) -> None:
    if not table.headers:
        logger.info("Export sanity: rows=0")
        return
    df = table.to_frame()
    counts = []
    for col in OWNER_FIELDS + CONTACT_FIELDS:
        if col in df.columns:
            filled = int((df[col].astype(str).str.strip() != "").sum())
            counts.append(f"{col}_filled={filled}")
    logger.info(f"Export sanity: rows={len(df)} " + " ".join(counts))


def default_output_path(input_path) -> Path:
    p = Path(input_path)
    return p.with_name(f"{p.stem}_enriched{p.suffix or '.csv'}")


def run_enrichment(
    input_path,
    output_path=None,
    settings: Optional[Settings] = None,
    client: Optional[OwnerLookupClient] = None,
    limiter: Optional[FixedDelayRateLimiter] = None,
) -> EnrichmentStats:
    """
    Enrich a CSV file and write the result

    Raises:
        InputNotFoundError: input file is missing (no output is written)
    """
    settings = settings or Settings.from_env()
    input_path = Path(input_path)
    output_path = Path(output_path) if output_path else default_output_path(input_path)

    if not input_path.exists():
        raise InputNotFoundError(f"Input file not found: {input_path}")
    if output_path.resolve() == input_path.resolve():
        logger.warning(f"Output path is the input path; {input_path} will be overwritten")

    client = client or OwnerLookupClient(
        settings.api_base_url,
        source=settings.lookup_source,
        timeout=settings.request_timeout_s,
    )
    limiter = limiter or FixedDelayRateLimiter(settings.lookup_delay_s)

    logger.info("Starting owner enrichment...")
    logger.info(f"  Input file: {input_path}")
    logger.info(f"  Output file: {output_path}")
    logger.info(f"  API URL: {client.base_url} (source={client.source})")

    table = read_table(input_path)
    if not table.rows:
        logger.warning("Input table has no data rows")

    stats = enrich_table(table, client, limiter)

    logger.info("Summary:")
    logger.info(f"  Total listings: {stats.total}")
    logger.info(f"  Processed: {stats.processed}")
    logger.info(f"  Updated: {stats.updated}")
    logger.info(f"  Unresolved: {stats.unresolved}")

    log_export_sanity(table)
    write_table(table.headers, table.rows, output_path)
    return stats


def summarize(stats: EnrichmentStats) -> Dict[str, int]:
    return {"total": stats.total, "processed": stats.processed, "updated": stats.updated}
