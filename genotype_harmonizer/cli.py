"""Typer CLI for the genotype harmonizer.

Usage:
    # Summarize a normalized genotype file (build detected from anchors)
    genotype-harmonizer summary genome.tsv --source 23andMe

    # Remap to GRCh38 and classify the chip using a resources directory
    genotype-harmonizer summary genome.tsv.gz -s 23andMe -r resources/ -t 38
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from genotype_harmonizer import __version__
from genotype_harmonizer.config import Config
from genotype_harmonizer.exceptions import ResourceUnavailable, ValidationError
from genotype_harmonizer.logging_config import setup_logging
from genotype_harmonizer.parsers import read_genotypes
from genotype_harmonizer.resources import (
    ChipClustersFile,
    EnsemblMappingFiles,
    LowQualityFile,
    Resources,
)
from genotype_harmonizer.sample import Sample, build_sample

app = typer.Typer(
    name="genotype-harmonizer",
    help="Detect build, remap, deduplicate and classify consumer SNP genotype data",
    add_completion=False,
)

console = Console()

# Resource file names looked up in --resources
CHIP_CLUSTERS_FILES = ("chip_clusters.tsv.gz", "chip_clusters.tsv")
LOW_QUALITY_FILES = ("low_quality_snps.tsv.gz", "low_quality_snps.tsv")


def _first_existing(directory: Path, names: tuple[str, ...]) -> Path | None:
    for name in names:
        path = directory / name
        if path.exists():
            return path
    return None


def load_resources(resources_dir: Path | None) -> Resources:
    """Build file-backed resources from a resources directory.

    The directory may contain Ensembl mapping data (``GRCh37_GRCh38/`` or
    ``GRCh37_GRCh38.tar.gz``), ``chip_clusters.tsv[.gz]`` and
    ``low_quality_snps.tsv[.gz]``. Missing cluster or low-quality files leave
    those providers unset.
    """
    if resources_dir is None:
        return Resources()

    clusters_file = _first_existing(resources_dir, CHIP_CLUSTERS_FILES)
    low_quality_file = _first_existing(resources_dir, LOW_QUALITY_FILES)

    return Resources(
        mapping=EnsemblMappingFiles(resources_dir),
        clusters=ChipClustersFile(clusters_file) if clusters_file else None,
        low_quality=LowQualityFile(low_quality_file) if low_quality_file else None,
    )


def print_summary(sample: Sample) -> None:
    """Print the sample summary and discrepancy counts."""
    summary = sample.summary
    if not summary:
        console.print("[yellow]Sample holds no SNPs[/yellow]")
        return

    table = Table(title="Sample summary", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Source", summary["source"] or "-")
    table.add_row("Assembly", summary["assembly"])
    table.add_row("Build detected", "yes" if summary["build_detected"] else "no")
    table.add_row("SNP count", f"{summary['count']:,}")
    table.add_row("Chromosomes", summary["chromosomes"])
    table.add_row("Sex", summary["sex"] or "unknown")
    if sample.cluster_id:
        table.add_row("Chip cluster", sample.cluster_id)
        table.add_row("Chip", f"{sample.chip} {sample.chip_version}".strip())
    console.print(table)

    counts = Table(title="Discrepancies")
    counts.add_column("Table", style="bold")
    counts.add_column("Rows", justify="right")
    counts.add_row("malformed (skipped)", f"{sample.malformed_count:,}")
    counts.add_row("duplicate", f"{len(sample.duplicate):,}")
    counts.add_row("discrepant_XY", f"{len(sample.discrepant_xy):,}")
    counts.add_row("heterozygous_MT", f"{len(sample.heterozygous_mt):,}")
    counts.add_row("discrepant_merge_positions", f"{len(sample.discrepant_merge_positions):,}")
    counts.add_row("discrepant_merge_genotypes", f"{len(sample.discrepant_merge_genotypes):,}")
    console.print(counts)


@app.callback()
def callback() -> None:
    """Consumer SNP genotype harmonizer."""


@app.command()
def summary(
    genotypes: Annotated[
        Path,
        typer.Argument(
            help="Tab-separated genotype file: rsid, chromosome, position, genotype",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    source: Annotated[
        str,
        typer.Option(
            "--source", "-s",
            help="Source label, e.g. 23andMe or AncestryDNA",
        ),
    ] = "",
    build: Annotated[
        int,
        typer.Option(
            "--build", "-b",
            help="Genome build of the input (36, 37 or 38; 0 = detect)",
        ),
    ] = 0,
    resources_dir: Annotated[
        Path | None,
        typer.Option(
            "--resources", "-r",
            help="Directory with assembly mapping, chip cluster and low-quality SNP data",
            exists=True,
            file_okay=False,
            dir_okay=True,
        ),
    ] = None,
    target_build: Annotated[
        int | None,
        typer.Option(
            "--target-build", "-t",
            help="Remap to this build (36, 37 or 38); requires --resources",
        ),
    ] = None,
    force_male: Annotated[
        bool,
        typer.Option(
            "--force-male",
            help="Treat the sample as male for X/Y deduplication",
        ),
    ] = False,
    no_dedup: Annotated[
        bool,
        typer.Option(
            "--no-dedup",
            help="Skip rsid, X/Y and MT deduplication",
        ),
    ] = False,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers", "-j",
            help="Number of parallel workers for per-chromosome processing (default: sequential)",
            min=1,
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write detailed (DEBUG) logs to this file",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose", "-v",
            help="Enable verbose logging",
        ),
    ] = False,
) -> None:
    """Build a sample from a genotype file and print its summary.

    Example usage:

        # Detect the build and summarize
        genotype-harmonizer summary genome.tsv -s 23andMe

        # Remap to GRCh38 with Ensembl mapping data
        genotype-harmonizer summary genome.tsv -s 23andMe -r resources/ -t 38
    """
    setup_logging(
        log_file=log_file,
        console_level=logging.INFO if verbose else logging.WARNING,
    )

    console.print(f"[bold]Genotype Harmonizer[/bold] v{__version__}\n", style="blue")

    config = Config(
        deduplicate=not no_dedup,
        deduplicate_xy_chrom=not no_dedup,
        deduplicate_mt_chrom=not no_dedup,
        force_male=force_male,
        parallelize=workers is not None and workers > 1,
        max_workers=workers,
    )

    try:
        resources = load_resources(resources_dir)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"Reading {genotypes.name}...", total=None)
            sample = build_sample(
                read_genotypes(genotypes),
                source=source,
                build=build,
                config=config,
                resources=resources,
            )

        if not sample.is_valid:
            console.print(f"[red]ERROR:[/red] No valid SNPs found in {genotypes}")
            raise typer.Exit(code=1)

        if target_build is not None:
            stats = sample.remap(target_build)
            console.print(
                f"Remapped to {sample.assembly}: {stats.remapped:,} SNPs, "
                f"{stats.unmapped:,} unmapped"
            )
            if not sample.is_valid:
                console.print(f"[red]ERROR:[/red] No SNPs could be remapped to {sample.assembly}")
                raise typer.Exit(code=1)

        if resources.clusters is not None:
            match = sample.classify_chip()
            if match is None:
                console.print("[yellow]Chip cluster not identified[/yellow]")

        if resources.low_quality is not None:
            console.print(f"Low-quality SNPs: {len(sample.low_quality):,}")

    except (ValidationError, ResourceUnavailable) as e:
        console.print(f"[red]ERROR:[/red] {e}")
        raise typer.Exit(code=1)

    print_summary(sample)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
