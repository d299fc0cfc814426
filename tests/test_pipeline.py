"""
End-to-end tests for the MLS enrichment pipeline.
"""

import csv
import json

import pytest

from config.settings import settings
from processing.enrichment import ENRICHMENT_COLUMNS
from processing.errors import MissingInputFile, MissingRequiredColumn, NoCandidateFilesFound
from processing.pipeline import MlsEnrichmentPipeline
from processing.record_linkage import MatchingConfig
from sources.brokerage import load_realtor_records, read_export_rows
from sources.csv_files import read_header


def make_pipeline(county_file, realtor_dir, tmp_path, name="enriched.csv"):
    return MlsEnrichmentPipeline(
        county_file=county_file,
        realtor_dir=realtor_dir,
        output_file=tmp_path / name,
        report_file=tmp_path / "report.json",
        config=MatchingConfig(),
    )


def read_output(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def test_export_header_is_found_below_banner_rows(realtor_dir):
    headers, rows = read_export_rows(realtor_dir / "NE Seattle Sale Stats.csv")

    assert headers[0] == "Listing Number"
    assert headers[-1] == "Listing Number (2)"
    assert len(rows) == 7
    assert rows[0]["APN"] == "123456-7890"


def test_regions_come_from_file_names(realtor_dir):
    records, files = load_realtor_records(realtor_dir, settings.REGION_LABELS)

    assert [f.name for f in files] == ["NE Seattle Sale Stats.csv", "QA_Magnolia Sale Stats.csv"]
    assert records[0].region == "NE Seattle"
    assert records[-1].region == "Queen Anne / Magnolia"


def test_pipeline_counts(county_file, realtor_dir, tmp_path):
    result = make_pipeline(county_file, realtor_dir, tmp_path).run()

    assert result.stats.as_counts() == {
        "mlsRowsParsed": 8,
        "mlsClosedRows": 4,
        "mlsOpenRows": 2,
        "mlsActiveRows": 1,
        "invalidApnRows": 1,
        "unindexedRows": 1,
        "countyRows": 6,
        "matchedRows": 2,
        "stubEnrichedRows": 1,
        "mlsOnlyAdded": 1,
        "openListingsAdded": 1,
        "countyDuplicatesSkipped": 1,
        "exportDuplicatesSkipped": 0,
        "outputRows": 8,
    }


def test_pipeline_output(county_file, realtor_dir, tmp_path):
    pipeline = make_pipeline(county_file, realtor_dir, tmp_path)
    pipeline.run()

    rows = read_output(pipeline.output_file)
    by_id = {row["id"]: row for row in rows}

    assert [row["id"] for row in rows] == ["C1", "C2", "C3", "C4", "C5", "C6", "MLS-1005", "MLS-1007"]

    c1 = by_id["C1"]
    assert c1["mlsJoinMethod"] == "APN_PRICE_DATE_WINDOW"
    assert c1["mlsListingNumber"] == "1001"
    assert c1["mlsDateLagDays"] == "2"
    assert c1["mlsPriceDiff"] == "1000"
    assert c1["closePrice"] == "501000"
    assert c1["bidUpAmount"] == "21000"
    assert c1["bidUpPct"] == "0.0438"
    assert c1["saleToListRatio"] == "1.0438"
    assert c1["address"] == "100 Main St, Seattle WA 98103"
    assert c1["mlsRegion"] == "NE Seattle"

    c2 = by_id["C2"]
    assert c2["mlsJoinMethod"] == "APN_LISTING_STUB"
    assert c2["mlsStatus"] == "Pending"
    assert c2["mlsDateLagDays"] == "19"
    assert c2["closePrice"] == "700000"

    assert by_id["C3"]["dataMode"] == "PUBLIC_PROXY"
    assert by_id["C3"]["mlsJoinMethod"] == ""
    assert by_id["C4"]["dataMode"] == "PUBLIC_PROXY"
    assert by_id["C5"]["mlsListingNumber"] == "1003"

    sold = by_id["MLS-1005"]
    assert sold["mlsJoinMethod"] == "MLS_SOLD_NOT_IN_COUNTY"
    assert sold["address"] == "600 Birch Rd"
    assert sold["neighborhood"] == "Ballard"
    assert sold["sqft"] == "1400"
    assert sold["beds"] == "2"

    listing = by_id["MLS-1007"]
    assert listing["mlsJoinMethod"] == "MLS_STATUS_OPEN"
    assert listing["mlsStatus"] == "Active"
    assert listing["mlsRegion"] == "Queen Anne / Magnolia"
    assert listing["closePrice"] == ""
    assert listing["saleDate"] == ""


def test_output_column_order(county_file, realtor_dir, tmp_path):
    result = make_pipeline(county_file, realtor_dir, tmp_path).build()

    assert result.headers == read_header(county_file) + ENRICHMENT_COLUMNS
    assert len(set(result.headers)) == len(result.headers)


def test_runs_are_byte_identical(county_file, realtor_dir, tmp_path):
    first = make_pipeline(county_file, realtor_dir, tmp_path, "first.csv")
    second = make_pipeline(county_file, realtor_dir, tmp_path, "second.csv")
    first.run()
    second.run()

    assert first.output_file.read_bytes() == second.output_file.read_bytes()


def test_report_build_section(county_file, realtor_dir, tmp_path):
    pipeline = make_pipeline(county_file, realtor_dir, tmp_path)
    pipeline.report_file.write_text(json.dumps({"validation": {"status": "pass"}}))
    pipeline.run()

    report = json.loads(pipeline.report_file.read_text())
    assert report["validation"] == {"status": "pass"}
    assert report["build"]["counts"]["outputRows"] == 8
    assert report["build"]["files"]["realtorCsvFiles"] == [
        "NE Seattle Sale Stats.csv",
        "QA_Magnolia Sale Stats.csv",
    ]


def test_missing_county_file_writes_nothing(realtor_dir, tmp_path):
    pipeline = make_pipeline(tmp_path / "absent.csv", realtor_dir, tmp_path)

    with pytest.raises(MissingInputFile):
        pipeline.run()
    assert not pipeline.output_file.exists()
    assert not pipeline.report_file.exists()


def test_missing_county_columns_are_all_listed(county_file, realtor_dir, tmp_path, write_county):
    headers = [h for h in read_header(county_file) if h not in ("saleDate", "major")]
    county_file = write_county(tmp_path / "county_missing.csv", headers)
    pipeline = make_pipeline(county_file, realtor_dir, tmp_path)

    with pytest.raises(MissingRequiredColumn) as exc_info:
        pipeline.run()
    assert exc_info.value.columns == ["saleDate", "major"]
    assert not pipeline.output_file.exists()


def test_empty_export_directory(county_file, tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    pipeline = make_pipeline(county_file, empty, tmp_path)

    with pytest.raises(NoCandidateFilesFound):
        pipeline.run()
    assert not pipeline.output_file.exists()


def test_export_without_header_row(county_file, tmp_path):
    directory = tmp_path / "bad_exports"
    directory.mkdir()
    (directory / "NE Seattle Sale Stats.csv").write_text("Sale Stats Report\nnothing,here\n")
    pipeline = make_pipeline(county_file, directory, tmp_path)

    with pytest.raises(MissingRequiredColumn):
        pipeline.run()
    assert not pipeline.output_file.exists()


def test_sale_repeated_across_exports_is_emitted_once(county_file, tmp_path, write_export, ne_rows, qa_rows):
    """A sale listed in two region exports, or twice in one, yields one output row."""
    repeated = {
        "Listing Number": "2001", "APN": "9999999999", "Status": "Sold",
        "Listing Date": "2024-05-01", "Pending Date": "2024-05-10", "Selling Date": "2024-06-15",
        "Listing Price": "900000", "Original Price": "900000", "Selling Price": "925000",
        "DOM": "9", "CDOM": "9",
    }
    directory = tmp_path / "realtor_exports"
    directory.mkdir()
    write_export(directory / "NE Seattle Sale Stats.csv", ne_rows + [repeated, repeated])
    # Second copy of the sale linked to county row C1, plus another copy of 2001
    write_export(directory / "NW Seattle Sale Stats.csv", [ne_rows[0], repeated])
    write_export(directory / "QA_Magnolia Sale Stats.csv", qa_rows + [qa_rows[0]])

    pipeline = make_pipeline(county_file, directory, tmp_path)
    result = pipeline.run()
    ids = [row["id"] for row in read_output(pipeline.output_file)]

    assert ids == ["C1", "C2", "C3", "C4", "C5", "C6", "MLS-1005", "MLS-2001", "MLS-1007"]
    assert result.stats.mls_only_added == 2
    assert result.stats.open_listings_added == 1
    assert result.stats.export_duplicates_skipped == 4
    assert result.stats.output_rows == 9
