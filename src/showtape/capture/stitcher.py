"""Concatenate captured fragments into one episode file."""

import logging
import shutil
from collections.abc import Iterable
from pathlib import Path

from showtape.models import Fragment
from showtape.utils.errors import StitchError

logger = logging.getLogger(__name__)

COPY_BUFFER_BYTES = 1024 * 1024


def stitch(fragments: Iterable[Fragment], output_path: Path) -> Path:
    """Append every fragment, in sequence order, to a new file.

    Raw byte concatenation: no framing, no re-encoding. Fragments are
    streamed one buffer at a time. On any I/O error the partial output is
    removed, so an incomplete file never reaches the uploader. An empty
    fragment list produces a zero-byte file.

    Args:
        fragments: Fragments to join (sorted by sequence here)
        output_path: Destination file; must not exist yet

    Returns:
        output_path

    Raises:
        StitchError: If the output exists or any fragment cannot be read or written
    """
    ordered = sorted(fragments, key=lambda fragment: fragment.sequence)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    total = 0
    try:
        with open(output_path, "xb") as output:
            for fragment in ordered:
                with open(fragment.path, "rb") as source:
                    shutil.copyfileobj(source, output, COPY_BUFFER_BYTES)
                total = output.tell()
    except FileExistsError as e:
        raise StitchError(f"Output file already exists: {output_path}") from e
    except OSError as e:
        output_path.unlink(missing_ok=True)
        raise StitchError(f"Failed to stitch {len(ordered)} fragment(s) into {output_path}: {e}") from e

    logger.info(f"Stitched {len(ordered)} fragment(s) into {output_path} ({total} bytes)")
    return output_path
