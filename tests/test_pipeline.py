"""
Tests for the owner enrichment pipeline.
"""

from unittest.mock import Mock

import pytest

from conftest import write_csv
from listing_enrich.config import Settings
from listing_enrich.csv_codec import parse_table, read_table
from listing_enrich.owner_lookup import OwnerInfo, Resolved, Unresolved
from listing_enrich.pipeline import (
    InputNotFoundError,
    default_output_path,
    enrich_table,
    lookup_address_for,
    run_enrichment,
    summarize,
)
from listing_enrich.rate_limit import FixedDelayRateLimiter


def make_client(*results, source="trulia"):
    client = Mock()
    client.source = source
    client.base_url = "http://api.test"
    client.lookup.side_effect = list(results)
    return client


def make_limiter():
    sleeps = []
    return FixedDelayRateLimiter(1.0, sleep=sleeps.append), sleeps


def test_partial_result_updates_one_field():
    table = parse_table("address,owner_name,mailing_address\n123 Main St,,\n")
    client = make_client(Resolved(OwnerInfo(owner_name="Jane Doe")))
    limiter, sleeps = make_limiter()

    stats = enrich_table(table, client, limiter)

    assert table.rows[0]["owner_name"] == "Jane Doe"
    assert table.rows[0]["mailing_address"] == ""
    assert stats.updated == 1
    assert stats.processed == 1
    assert sleeps == []  # single row: no pause after the last one


def test_complete_rows_are_untouched_and_not_looked_up():
    table = parse_table(
        "address,owner_name,mailing_address\n"
        "1 A St,Old Owner,PO Box 9\n"
        "2 B St,,\n"
    )
    client = make_client(Resolved(OwnerInfo(owner_name="New", mailing_address="New Addr")))
    limiter, _ = make_limiter()

    stats = enrich_table(table, client, limiter)

    assert table.rows[0] == {"address": "1 A St", "owner_name": "Old Owner", "mailing_address": "PO Box 9"}
    assert client.lookup.call_count == 1
    client.lookup.assert_called_once_with("2 B St", None)
    assert stats.processed == 2
    assert stats.already_complete == 1
    assert stats.updated == 2


def test_failed_lookup_leaves_row_and_continues():
    table = parse_table(
        "address,listing_link,owner_name,mailing_address\n"
        "1 A St,https://www.trulia.com/p/1,,\n"
        "2 B St,https://www.trulia.com/p/2,,\n"
    )
    client = make_client(
        Unresolved("http_503"),
        Resolved(OwnerInfo(owner_name="Bob", mailing_address="PO Box 2")),
    )
    limiter, sleeps = make_limiter()

    stats = enrich_table(table, client, limiter)

    assert table.rows[0]["owner_name"] == ""
    assert table.rows[0]["mailing_address"] == ""
    assert table.rows[1]["owner_name"] == "Bob"
    assert stats.processed == 2
    assert stats.unresolved == 1
    assert stats.updated == 2
    assert client.lookup.call_args_list[0][0] == ("1 A St", "https://www.trulia.com/p/1")
    assert sleeps == [1.0]


def test_rows_without_address_are_skipped_and_not_counted():
    table = parse_table("address,owner_name,mailing_address\n,,\n1 A St,,\n")
    client = make_client(Resolved(OwnerInfo()))
    limiter, _ = make_limiter()

    stats = enrich_table(table, client, limiter)

    assert stats.total == 2
    assert stats.processed == 1
    assert stats.skipped_no_address == 1
    assert stats.updated == 0
    assert client.lookup.call_count == 1


def test_partially_filled_row_is_looked_up_and_fields_refreshed():
    table = parse_table("address,owner_name,mailing_address\n1 A St,Known Owner,\n")
    client = make_client(Resolved(OwnerInfo(owner_name="", mailing_address="PO Box 5")))
    limiter, _ = make_limiter()

    stats = enrich_table(table, client, limiter)

    assert table.rows[0]["owner_name"] == "Known Owner"
    assert table.rows[0]["mailing_address"] == "PO Box 5"
    assert stats.updated == 1


def test_pacing_between_lookups_only():
    table = parse_table("address,owner_name,mailing_address\nA,,\nB,,\nC,,\n")
    client = make_client(*[Resolved(OwnerInfo())] * 3)
    limiter, sleeps = make_limiter()

    enrich_table(table, client, limiter)

    assert sleeps == [1.0, 1.0]
    assert limiter.pauses == 2


def test_missing_owner_columns_are_added_and_nulls_cleared():
    table = parse_table("address,price,owner_name\n1 A St,100,null\n")
    client = make_client(Resolved(OwnerInfo(mailing_address="PO Box 1")))
    limiter, _ = make_limiter()

    enrich_table(table, client, limiter)

    assert table.headers == ["address", "price", "owner_name", "mailing_address"]
    assert table.rows[0] == {"address": "1 A St", "price": "100", "owner_name": "", "mailing_address": "PO Box 1"}


def test_addresses_source_composes_address_and_merges_contacts():
    table = parse_table("address,city,state,zip\n514 Peach Spring Dr,Houston,TX,77037\n")
    client = make_client(
        Resolved(OwnerInfo(owner_name="A Owner", emails="a@x.com, b@x.com", phones="555-0100")),
        source="addresses",
    )
    limiter, _ = make_limiter()

    stats = enrich_table(table, client, limiter)

    client.lookup.assert_called_once_with("514 Peach Spring Dr, Houston, TX 77037", None)
    assert table.headers[-4:] == ["owner_name", "mailing_address", "emails", "phones"]
    assert table.rows[0]["emails"] == "a@x.com, b@x.com"
    assert stats.updated == 3


def test_lookup_address_for_other_sources_is_plain():
    row = {"address": " 1 A St ", "city": "Austin", "state": "TX", "zip": "78701"}
    assert lookup_address_for(row, "trulia") == "1 A St"
    assert lookup_address_for(row, "addresses") == "1 A St, Austin, TX 78701"
    assert lookup_address_for({"address": ""}, "addresses") == ""


class TestRunEnrichment:

    def test_writes_output_and_keeps_input(self, tmp_path):
        src = write_csv(tmp_path / "trulia_listings.csv",
                        'address,listing_link,owner_name,mailing_address,notes\n'
                        '"1 A St, Unit 2",https://www.trulia.com/p/1,,,"has ""quotes"""\n'
                        '2 B St,,Done Owner,PO Box 3,\n')
        original = src.read_text(encoding="utf-8")
        client = make_client(Resolved(OwnerInfo(owner_name="Jane Doe", mailing_address="PO Box 1, Austin")))

        stats = run_enrichment(src, settings=Settings(lookup_delay_s=0), client=client)

        out = default_output_path(src)
        assert out.name == "trulia_listings_enriched.csv"
        assert src.read_text(encoding="utf-8") == original

        table = read_table(out)
        assert table.headers == ["address", "listing_link", "owner_name", "mailing_address", "notes"]
        assert table.rows[0] == {
            "address": "1 A St, Unit 2",
            "listing_link": "https://www.trulia.com/p/1",
            "owner_name": "Jane Doe",
            "mailing_address": "PO Box 1, Austin",
            "notes": 'has "quotes"',
        }
        assert table.rows[1]["owner_name"] == "Done Owner"
        assert summarize(stats) == {"total": 2, "processed": 2, "updated": 2}

    def test_missing_input_writes_nothing(self, tmp_path):
        client = make_client()
        out = tmp_path / "out.csv"
        with pytest.raises(InputNotFoundError):
            run_enrichment(tmp_path / "nope.csv", out, settings=Settings(lookup_delay_s=0), client=client)
        assert not out.exists()
        client.lookup.assert_not_called()

    def test_rerun_only_retries_unresolved_rows(self, tmp_path):
        src = write_csv(tmp_path / "in.csv", "address,owner_name,mailing_address\nA,,\nB,,\n")
        out = tmp_path / "out.csv"
        first = make_client(
            Resolved(OwnerInfo(owner_name="Ann", mailing_address="PO 1")),
            Unresolved("http_503"),
        )
        run_enrichment(src, out, settings=Settings(lookup_delay_s=0), client=first)

        second = make_client(Resolved(OwnerInfo(owner_name="Ben", mailing_address="PO 2")))
        stats = run_enrichment(out, tmp_path / "out2.csv", settings=Settings(lookup_delay_s=0), client=second)

        second.lookup.assert_called_once_with("B", None)
        assert stats.already_complete == 1
        rows = read_table(tmp_path / "out2.csv").rows
        assert [r["owner_name"] for r in rows] == ["Ann", "Ben"]


def test_addresses_row_with_owner_but_no_contacts_is_looked_up():
    table = parse_table(
        "address,city,state,zip,owner_name,mailing_address,emails,phones,listing_link\n"
        "1 A St,Austin,TX,78701,Ann,PO 1,,,https://www.trulia.com/p/1\n"
        "2 B St,Austin,TX,78702,Bo,PO 2,b@x.com,555-0102,\n"
    )
    client = make_client(
        Resolved(OwnerInfo(owner_name="Ann", emails="ann@x.com", phones="555-0101")),
        source="addresses",
    )
    limiter, _ = make_limiter()

    stats = enrich_table(table, client, limiter)

    client.lookup.assert_called_once_with("1 A St, Austin, TX 78701", None)
    assert table.rows[0]["emails"] == "ann@x.com"
    assert table.rows[0]["phones"] == "555-0101"
    assert table.rows[0]["mailing_address"] == "PO 1"
    assert stats.already_complete == 1
    assert stats.processed == 2
    assert stats.updated == 3


def test_trulia_rows_with_both_owner_fields_still_skip_without_contact_columns():
    table = parse_table("address,owner_name,mailing_address,emails\n1 A St,Ann,PO 1,\n")
    client = make_client(source="trulia")
    limiter, _ = make_limiter()

    stats = enrich_table(table, client, limiter)

    client.lookup.assert_not_called()
    assert stats.already_complete == 1


def test_header_only_input_writes_empty_output(tmp_path):
    src = write_csv(tmp_path / "in.csv", "address,listing_link,price\n")
    out = tmp_path / "out.csv"
    client = make_client()

    stats = run_enrichment(src, out, settings=Settings(lookup_delay_s=0), client=client)

    assert out.read_text(encoding="utf-8") == ""
    assert stats.total == 0
    client.lookup.assert_not_called()
