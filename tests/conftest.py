"""
Shared fixtures: record factories and a small on-disk county extract plus
brokerage export directory.
"""

import csv
import os
import sys
from pathlib import Path

# Keep test runs from writing log files
os.environ.setdefault("LOG_TO_FILE", "false")

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from processing.models import CountySaleRecord, RealtorListingRecord

COUNTY_HEADERS = [
    "id",
    "address",
    "type",
    "closePrice",
    "saleDate",
    "listDate",
    "pendingDate",
    "listPriceAtPending",
    "major",
    "minor",
    "parcelNbr",
    "neighborhood",
    "zip",
    "beds",
    "baths",
    "sqft",
    "yearBuilt",
    "lat",
    "lon",
]

# "Listing Number" appears twice, as in the real exports
REALTOR_HEADERS = [
    "Listing Number",
    "APN",
    "Status",
    "Listing Date",
    "Pending Date",
    "Contractual Date",
    "Selling Date",
    "Listing Price",
    "Original Price",
    "Selling Price",
    "DOM",
    "CDOM",
    "Street Number",
    "Street Name",
    "Street Suffix",
    "City",
    "State",
    "Zip Code",
    "Bedrooms",
    "Bathrooms",
    "Square Footage",
    "Year Built",
    "Style Code",
    "Subdivision",
    "Listing Number",
]

COUNTY_ROWS = [
    # Closed-sale match with listing 1001
    {"id": "C1", "address": "100 Main St", "type": "Residential", "closePrice": "500000",
     "saleDate": "2024-03-15", "listPriceAtPending": "480000", "major": "123456", "minor": "7890",
     "neighborhood": "Fremont", "zip": "98103", "beds": "3", "baths": "2", "sqft": "1750",
     "yearBuilt": "1925", "lat": "47.65", "lon": "-122.35"},
    # Listing-stub match with pending listing 1006
    {"id": "C2", "address": "200 Oak Ave", "type": "Residential", "closePrice": "700000",
     "saleDate": "04/20/2024", "major": "222222", "minor": "2222", "zip": "98115"},
    # No brokerage counterpart
    {"id": "C3", "address": "300 Pine St", "type": "Residential", "closePrice": "400000",
     "saleDate": "2024-05-01", "major": "333333", "minor": "3333"},
    # Unusable parcel key
    {"id": "C4", "address": "400 Elm St", "type": "Residential", "closePrice": "650000",
     "saleDate": "2024-05-10", "major": "", "minor": ""},
    # Two identical closed listings: one links, the other is a county duplicate
    {"id": "C5", "address": "500 Cedar Ln", "type": "Residential", "closePrice": "600000",
     "saleDate": "2024-06-01", "major": "555555", "minor": "5555"},
    # Descriptors for the MLS-only sold parcel
    {"id": "C6", "address": "600 Birch Rd", "type": "Townhouse", "closePrice": "0",
     "saleDate": "", "major": "666666", "minor": "6666", "neighborhood": "Ballard",
     "zip": "98107", "beds": "0", "sqft": "1400", "lat": "47.67", "lon": "-122.38"},
]

NE_ROWS = [
    {"Listing Number": "1001", "APN": "123456-7890", "Status": "Sold",
     "Listing Date": "2024-02-01", "Pending Date": "2024-02-05", "Selling Date": "3/17/2024",
     "Listing Price": "$480,000", "Original Price": "490000", "Selling Price": "$501,000",
     "DOM": "4", "CDOM": "4", "Street Number": "100", "Street Name": "Main", "Street Suffix": "St",
     "City": "Seattle", "State": "WA", "Zip Code": "98103", "Bedrooms": "3", "Bathrooms": "2.5",
     "Square Footage": "1800", "Year Built": "1925", "Style Code": "12 - 1 Story"},
    {"Listing Number": "1003", "APN": "5555555555", "Status": "Sold",
     "Listing Date": "2024-04-10", "Pending Date": "2024-04-20", "Selling Date": "2024-06-01",
     "Listing Price": "590000", "Original Price": "590000", "Selling Price": "600000",
     "DOM": "10", "CDOM": "10"},
    {"Listing Number": "1004", "APN": "5555555555", "Status": "Sold",
     "Listing Date": "2024-04-10", "Pending Date": "2024-04-20", "Selling Date": "2024-06-01",
     "Listing Price": "590000", "Original Price": "590000", "Selling Price": "600000",
     "DOM": "10", "CDOM": "10"},
    {"Listing Number": "1005", "APN": "6666666666", "Status": "Sold",
     "Listing Date": "2024-06-01", "Pending Date": "2024-06-09", "Selling Date": "2024-07-10",
     "Listing Price": "750000", "Original Price": "775000", "Selling Price": "800000",
     "DOM": "8", "CDOM": "8", "Bedrooms": "2"},
    {"Listing Number": "1006", "APN": "2222222222", "Status": "Pending",
     "Listing Date": "2024-03-20", "Pending Date": "2024-04-01", "Listing Price": "690000",
     "Original Price": "699000", "DOM": "12", "CDOM": "12"},
    {"Listing Number": "1008", "APN": "12345", "Status": "Sold",
     "Selling Date": "2024-05-05", "Selling Price": "450000"},
    {"Listing Number": "1009", "APN": "8888888888", "Status": "Pending",
     "Listing Date": "2024-05-01", "Pending Date": "2024-05-03"},
]

QA_ROWS = [
    {"Listing Number": "1007", "APN": "7777777777", "Status": "ACTIVE",
     "Listing Date": "2024-08-01", "Listing Price": "550000", "Original Price": "550000",
     "DOM": "3", "CDOM": "3"},
]


def write_county_csv(path: Path, rows=COUNTY_ROWS, headers=COUNTY_HEADERS) -> Path:
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        for row in rows:
            writer.writerow([row.get(h, "") for h in headers])
    return path


def write_export_csv(path: Path, rows, headers=REALTOR_HEADERS) -> Path:
    """Export with the banner rows the brokerage tool puts above the header."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Sale Stats Report"])
        writer.writerow(["Generated 08/15/2024", ""])
        writer.writerow([])
        writer.writerow(headers)
        for row in rows:
            writer.writerow([row.get(h, "") for h in headers])
    return path


@pytest.fixture
def county_file(tmp_path):
    return write_county_csv(tmp_path / "county.csv")


@pytest.fixture
def realtor_dir(tmp_path):
    directory = tmp_path / "realtor_exports"
    directory.mkdir()
    write_export_csv(directory / "NE Seattle Sale Stats.csv", NE_ROWS)
    write_export_csv(directory / "QA_Magnolia Sale Stats.csv", QA_ROWS)
    return directory


@pytest.fixture
def make_listing():
    def _make(uid="L1", parcel="1234567890", status="Sold", closed=True, **kwargs):
        return RealtorListingRecord(
            uid=uid,
            source_file="test.csv",
            row_index=0,
            region="Test",
            parcel=parcel,
            status=status,
            closed=closed,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_county():
    def _make(index=0, parcel="1234567890", sale_date="2024-03-15", close_price=500000, **kwargs):
        kwargs.setdefault("raw", {
            "id": f"C{index}",
            "address": kwargs.get("address", ""),
            "saleDate": sale_date,
            "closePrice": str(close_price),
            "major": parcel[:6],
            "minor": parcel[6:],
        })
        return CountySaleRecord(
            index=index,
            record_id=f"C{index}",
            parcel=parcel,
            sale_date=sale_date,
            close_price=close_price,
            **kwargs,
        )
    return _make


@pytest.fixture
def write_county():
    """Writer for county extracts with a chosen header."""
    def _write(path, headers=COUNTY_HEADERS, rows=COUNTY_ROWS):
        return write_county_csv(path, rows, headers)
    return _write


@pytest.fixture
def write_export():
    """Writer for brokerage exports, banner rows included."""
    return write_export_csv


@pytest.fixture
def ne_rows():
    return [dict(row) for row in NE_ROWS]


@pytest.fixture
def qa_rows():
    return [dict(row) for row in QA_ROWS]
