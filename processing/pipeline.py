"""
MLS Enrichment Pipeline

Single pass from the two source datasets to the enriched CSV:

1. Load county rows and brokerage exports (fatal errors stop here)
2. Index brokerage records by parcel, snapshot county descriptors by parcel
3. Link county rows: closed-sale match, else listing-stub match
4. Enrich linked rows
5. Synthesize rows for unused brokerage records
6. Assemble and write the CSV and the report section

Nothing is written until every earlier step has finished.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from config.logging import logger
from config.settings import settings
from processing.assembler import assemble_rows, output_columns
from processing.candidate_index import CandidateIndex
from processing.enrichment import enrich_county_row
from processing.models import ListingStatus, MatchResult
from processing.parcel_snapshot import build_parcel_snapshots
from processing.record_linkage import ExclusionSet, MatchingConfig, RecordLinker
from processing.report import update_report
from processing.synthesizer import SupplementalSynthesizer
from sources.brokerage import load_realtor_records
from sources.county import load_county_records
from sources.csv_files import write_csv


@dataclass
class PipelineStats:
    """Row counts from a pipeline run."""
    mls_rows_parsed: int = 0
    mls_closed_rows: int = 0
    mls_open_rows: int = 0
    mls_active_rows: int = 0
    invalid_apn_rows: int = 0
    unindexed_rows: int = 0
    county_rows: int = 0
    matched_rows: int = 0
    stub_enriched_rows: int = 0
    mls_only_added: int = 0
    open_listings_added: int = 0
    county_duplicates_skipped: int = 0
    export_duplicates_skipped: int = 0
    output_rows: int = 0

    def as_counts(self) -> dict[str, int]:
        return {
            "mlsRowsParsed": self.mls_rows_parsed,
            "mlsClosedRows": self.mls_closed_rows,
            "mlsOpenRows": self.mls_open_rows,
            "mlsActiveRows": self.mls_active_rows,
            "invalidApnRows": self.invalid_apn_rows,
            "unindexedRows": self.unindexed_rows,
            "countyRows": self.county_rows,
            "matchedRows": self.matched_rows,
            "stubEnrichedRows": self.stub_enriched_rows,
            "mlsOnlyAdded": self.mls_only_added,
            "openListingsAdded": self.open_listings_added,
            "countyDuplicatesSkipped": self.county_duplicates_skipped,
            "exportDuplicatesSkipped": self.export_duplicates_skipped,
            "outputRows": self.output_rows,
        }

    def log_summary(self):
        """Log summary statistics."""
        logger.info("=" * 60)
        logger.info("MLS ENRICHMENT COMPLETE")
        logger.info("=" * 60)
        logger.info(f"MLS rows parsed: {self.mls_rows_parsed}")
        logger.info(f"  - Closed: {self.mls_closed_rows}")
        logger.info(f"  - Open: {self.mls_open_rows} ({self.mls_active_rows} active)")
        logger.info(f"  - Invalid APN: {self.invalid_apn_rows}")
        logger.info(f"  - Unindexed: {self.unindexed_rows}")
        logger.info(f"County rows: {self.county_rows}")
        logger.info(f"Matched rows: {self.matched_rows}")
        logger.info(f"Stub-enriched rows: {self.stub_enriched_rows}")
        logger.info(f"MLS-only sold rows added: {self.mls_only_added}")
        logger.info(f"Open listing rows added: {self.open_listings_added}")
        logger.info(f"County duplicates skipped: {self.county_duplicates_skipped}")
        logger.info(f"Export duplicates skipped: {self.export_duplicates_skipped}")
        logger.info(f"Output rows: {self.output_rows}")
        logger.info("=" * 60)


@dataclass
class PipelineResult:
    """Everything a run produced, before or after writing."""
    headers: list[str]
    rows: list[dict[str, str]]
    matches: list[MatchResult]
    stats: PipelineStats
    source_files: list[Path] = field(default_factory=list)


class MlsEnrichmentPipeline:
    """
    Usage:
        pipeline = MlsEnrichmentPipeline()
        result = pipeline.run()
    """

    def __init__(
        self,
        county_file: Optional[Path] = None,
        realtor_dir: Optional[Path] = None,
        output_file: Optional[Path] = None,
        report_file: Optional[Path] = None,
        config: Optional[MatchingConfig] = None,
        region_labels: Optional[dict[str, str]] = None,
    ):
        self.county_file = Path(county_file or settings.COUNTY_SALES_FILE)
        self.realtor_dir = Path(realtor_dir or settings.REALTOR_EXPORT_DIR)
        self.output_file = Path(output_file or settings.ENRICHED_OUTPUT_FILE)
        self.report_file = Path(report_file or settings.REPORT_FILE)
        self.config = config or MatchingConfig.from_settings()
        self.region_labels = settings.REGION_LABELS if region_labels is None else region_labels

    def build(self) -> PipelineResult:
        """Run every step in memory. Raises PipelineError subclasses on bad inputs."""
        stats = PipelineStats()

        base_headers, county_records = load_county_records(self.county_file)
        realtor_records, source_files = load_realtor_records(self.realtor_dir, self.region_labels)

        index = CandidateIndex(realtor_records)
        stats.mls_rows_parsed = index.stats.parsed
        stats.mls_closed_rows = index.stats.closed
        stats.mls_open_rows = index.stats.open
        stats.mls_active_rows = sum(
            1 for record in index.iter_open() if record.status == ListingStatus.ACTIVE.value
        )
        stats.invalid_apn_rows = index.stats.invalid_parcel
        stats.unindexed_rows = index.stats.unindexed

        snapshots = build_parcel_snapshots(county_records)

        used = ExclusionSet()
        linker = RecordLinker(index, self.config, used)
        matches = linker.link_all(county_records)
        stats.county_rows = linker.stats.county_records
        stats.matched_rows = linker.stats.closed_matches
        stats.stub_enriched_rows = linker.stats.stub_matches

        county_rows = [
            enrich_county_row(
                record,
                match,
                ultra_hot_max_days=self.config.ultra_hot_max_days,
                hot_market_max_days=self.config.hot_market_max_days,
            )
            for record, match in zip(county_records, matches)
        ]

        signatures = {record.signature for record in county_records if record.parcel}
        linked = [match.candidate for match in matches if match.is_match]
        synthesizer = SupplementalSynthesizer(
            index, snapshots, signatures, used, self.config, linked=linked
        )
        closed_rows = synthesizer.synthesize_closed()
        open_rows = synthesizer.synthesize_open()
        stats.mls_only_added = synthesizer.stats.closed_added
        stats.open_listings_added = synthesizer.stats.open_added
        stats.county_duplicates_skipped = synthesizer.stats.county_duplicates_skipped
        stats.export_duplicates_skipped = synthesizer.stats.export_duplicates_skipped

        rows = assemble_rows(county_rows, closed_rows, open_rows)
        stats.output_rows = len(rows)

        return PipelineResult(
            headers=output_columns(base_headers),
            rows=rows,
            matches=matches,
            stats=stats,
            source_files=source_files,
        )

    def write(self, result: PipelineResult) -> None:
        write_csv(self.output_file, result.headers, result.rows)
        update_report(self.report_file, "build", {
            "generatedAt": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "files": {
                "county": self.county_file.name,
                "enriched": self.output_file.name,
                "realtorCsvFiles": [path.name for path in result.source_files],
            },
            "counts": result.stats.as_counts(),
        })
        logger.info(f"Output: {self.output_file}")

    def run(self) -> PipelineResult:
        logger.info(f"Building MLS-enriched dataset from {self.county_file.name} + {self.realtor_dir}")
        result = self.build()
        self.write(result)
        result.stats.log_summary()
        return result
