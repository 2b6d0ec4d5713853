"""Reading of genotype and resource text files, gzipped or not.

Consumer genotype exports and the chip cluster / low-quality tables are
often shipped as ``.gz``. Compression is detected from the file's first two
bytes, so a gzipped file is read correctly whatever its name.

Example:
    for line in iter_lines(Path("chip_clusters.tsv.gz"), comment="#"):
        locus, clusters = line.split("\t")
"""

import gzip
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, Literal

GZIP_MAGIC = b"\x1f\x8b"


def is_gzipped(filepath: Path) -> bool:
    """True if ``filepath`` starts with the gzip magic number.

    Files shorter than two bytes (or unreadable) are judged by a ``.gz``
    suffix instead.
    """
    try:
        with open(filepath, "rb") as f:
            head = f.read(len(GZIP_MAGIC))
    except OSError:
        head = b""

    if len(head) == len(GZIP_MAGIC):
        return head == GZIP_MAGIC
    return Path(filepath).suffix == ".gz"


@contextmanager
def smart_open(
    filepath: Path,
    mode: Literal["r", "rt", "rb"] = "rt",
) -> Iterator[IO[str] | IO[bytes]]:
    """Open a plain or gzipped file; text modes decode UTF-8.

    Args:
        filepath: File to open
        mode: "r"/"rt" for text, "rb" for (decompressed) bytes

    Yields:
        Open file handle, closed on exit
    """
    binary = mode == "rb"
    opener = gzip.open if is_gzipped(filepath) else open

    if binary:
        handle = opener(filepath, "rb")
    else:
        handle = opener(filepath, "rt", encoding="utf-8")

    try:
        yield handle
    finally:
        handle.close()


def iter_lines(filepath: Path, comment: str | None = None) -> Iterator[str]:
    """Yield lines without their line terminator ("\\n" or "\\r\\n").

    Args:
        filepath: File to read (may be gzipped)
        comment: If given, blank lines and lines starting with this prefix
            are skipped
    """
    with smart_open(filepath, "rt") as f:
        for raw in f:
            line = raw.rstrip("\r\n")
            if comment is not None and (not line.strip() or line.startswith(comment)):
                continue
            yield line
