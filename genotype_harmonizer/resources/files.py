"""File-backed resource providers.

Resource layouts:

Assembly mapping (Ensembl ``/map/human/{source}/{chrom}/{target}`` JSON),
either a directory or a tarball named after the assembly pair:
    <resources_dir>/GRCh37_GRCh38/1.json
    <resources_dir>/GRCh37_GRCh38.tar.gz   (members: 1.json, 2.json, ...)

    {"mappings": [{"original": {"seq_region_name": "1", "start": 1, "end": 100, "strand": 1},
                   "mapped":   {"seq_region_name": "1", "start": 11, "end": 110, "strand": 1}}]}

Chip clusters (tab-separated, locus then comma-separated cluster ids):
    1:752566    c1, c3, v5

Low-quality loci (tab-separated, cluster id then comma-separated loci):
    c1    1:752566,1:776546

Parsed data is cached per provider instance. Missing or unreadable files
raise ResourceUnavailable.
"""

import json
import logging
import tarfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from genotype_harmonizer.exceptions import ResourceUnavailable
from genotype_harmonizer.io_utils import iter_lines
from genotype_harmonizer.models import ChipCluster, MappingRegion, Orientation
from genotype_harmonizer.resources.base import (
    AssemblyMappingProvider,
    ChipClusterProvider,
    LowQualityProvider,
)
from genotype_harmonizer.resources.static import CHIP_CLUSTER_METADATA
from genotype_harmonizer.utils import assembly_name, normalize_chromosome, parse_locus, validate_build

logger = logging.getLogger(__name__)


def parse_ensembl_mappings(data: Mapping[str, Any], chrom: str) -> list[MappingRegion]:
    """Convert Ensembl assembly mapping JSON into sorted regions.

    Args:
        data: Parsed JSON with a "mappings" list
        chrom: Chromosome the mapping was requested for

    Returns:
        Regions sorted by source_start; entries for other source
        chromosomes are ignored
    """
    regions: list[MappingRegion] = []
    for mapping in data.get("mappings", []):
        original = mapping["original"]
        mapped = mapping["mapped"]

        if normalize_chromosome(original.get("seq_region_name", chrom)) != chrom:
            continue

        strand = int(mapped.get("strand", 1)) * int(original.get("strand", 1))
        regions.append(
            MappingRegion(
                source_start=int(original["start"]),
                source_end=int(original["end"]),
                target_start=int(mapped["start"]),
                target_end=int(mapped["end"]),
                orientation=Orientation.REVERSE if strand < 0 else Orientation.FORWARD,
                target_chrom=normalize_chromosome(mapped.get("seq_region_name", chrom)),
            )
        )

    regions.sort(key=lambda r: r.source_start)
    return regions


class EnsemblMappingFiles(AssemblyMappingProvider):
    """Assembly mappings read from Ensembl JSON files.

    Args:
        resources_dir: Directory holding ``<SRC>_<TGT>/`` directories or
            ``<SRC>_<TGT>.tar.gz`` archives
    """

    def __init__(self, resources_dir: Path) -> None:
        self.resources_dir = Path(resources_dir)
        self._cache: dict[tuple[int, int], dict[str, list[MappingRegion]]] = {}

    def _pair_name(self, source_build: int, target_build: int) -> str:
        return f"{assembly_name(source_build)}_{assembly_name(target_build)}"

    def _load_pair(self, source_build: int, target_build: int) -> dict[str, list[MappingRegion]]:
        name = self._pair_name(source_build, target_build)
        directory = self.resources_dir / name
        archive = self.resources_dir / f"{name}.tar.gz"

        raw: dict[str, Any] = {}
        try:
            if directory.is_dir():
                for path in sorted(directory.glob("*.json")):
                    raw[path.name.split(".")[0]] = json.loads(path.read_bytes())
            elif archive.exists():
                with tarfile.open(archive, "r:gz") as tar:
                    for member in tar.getmembers():
                        if not member.isfile() or ".json" not in member.name:
                            continue
                        f = tar.extractfile(member)
                        if f is None:
                            continue
                        raw[Path(member.name).name.split(".")[0]] = json.loads(f.read())
            else:
                raise ResourceUnavailable(
                    f"Assembly mapping data not found: {directory} or {archive}"
                )

            regions = {
                normalize_chromosome(chrom): parse_ensembl_mappings(data, normalize_chromosome(chrom))
                for chrom, data in raw.items()
            }
        except (OSError, tarfile.TarError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise ResourceUnavailable(f"Could not read assembly mapping data {name}: {e}") from e

        logger.debug("Loaded %s mapping data for %d chromosomes", name, len(raw))
        return regions

    def get_regions(
        self,
        chrom: str,
        source_build: int,
        target_build: int,
    ) -> list[MappingRegion] | None:
        pair = (validate_build(source_build), validate_build(target_build))
        if pair not in self._cache:
            self._cache[pair] = self._load_pair(*pair)
        return self._cache[pair].get(chrom)


class ChipClustersFile(ChipClusterProvider):
    """Chip clusters read from a locus -> clusters TSV.

    Args:
        filepath: Path to the clusters file (may be gzipped)
        metadata: cluster id -> (company_composition, chip_base_deduced);
            defaults to the published GenomePrep cluster descriptions
    """

    def __init__(
        self,
        filepath: Path,
        metadata: Mapping[str, tuple[str, str]] | None = None,
    ) -> None:
        self.filepath = Path(filepath)
        self.metadata = metadata if metadata is not None else CHIP_CLUSTER_METADATA
        self._clusters: list[ChipCluster] | None = None

    def _load(self) -> list[ChipCluster]:
        if not self.filepath.exists():
            raise ResourceUnavailable(f"Chip clusters file not found: {self.filepath}")

        positions: dict[str, set[tuple[str, int]]] = {}
        try:
            for line in iter_lines(self.filepath, comment="#"):
                parts = line.split("\t")
                if len(parts) < 2 or parts[0] == "locus":
                    continue
                locus = parse_locus(parts[0])
                for cluster_id in parts[1].split(","):
                    cluster_id = cluster_id.strip()
                    if cluster_id:
                        positions.setdefault(cluster_id, set()).add(locus)
        except (OSError, ValueError) as e:
            raise ResourceUnavailable(f"Could not read chip clusters {self.filepath}: {e}") from e

        clusters = []
        for cluster_id in sorted(positions):
            composition, chip_base = self.metadata.get(cluster_id, ("", ""))
            clusters.append(
                ChipCluster(
                    cluster_id=cluster_id,
                    positions=frozenset(positions[cluster_id]),
                    company_composition=composition,
                    chip_base_deduced=chip_base,
                )
            )
        logger.debug("Loaded %d chip clusters from %s", len(clusters), self.filepath)
        return clusters

    def get_clusters(self) -> list[ChipCluster]:
        if self._clusters is None:
            self._clusters = self._load()
        return list(self._clusters)


class LowQualityFile(LowQualityProvider):
    """Low-quality loci read from a cluster -> loci TSV.

    Args:
        filepath: Path to the low-quality file (may be gzipped)
        cluster: If given, only loci listed for this cluster are used
    """

    def __init__(self, filepath: Path, cluster: str | None = None) -> None:
        self.filepath = Path(filepath)
        self.cluster = cluster
        self._loci: set[tuple[str, int]] | None = None

    def _load(self) -> set[tuple[str, int]]:
        if not self.filepath.exists():
            raise ResourceUnavailable(f"Low-quality SNPs file not found: {self.filepath}")

        loci: set[tuple[str, int]] = set()
        try:
            for line in iter_lines(self.filepath, comment="#"):
                cluster, _, loci_field = line.partition("\t")
                if self.cluster is not None and cluster != self.cluster:
                    continue
                for locus in loci_field.split(","):
                    if locus.strip():
                        loci.add(parse_locus(locus))
        except (OSError, ValueError) as e:
            raise ResourceUnavailable(f"Could not read low-quality SNPs {self.filepath}: {e}") from e

        return loci

    def get_loci(self) -> set[tuple[str, int]]:
        if self._loci is None:
            self._loci = self._load()
        return set(self._loci)
