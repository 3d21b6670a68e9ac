import glob
import json
import logging
from pathlib import Path
from typing import Any, List, Sequence

from pydantic import TypeAdapter, ValidationError

from ..snippet import RawSnippet


_SNIPPET_LIST = TypeAdapter(List[RawSnippet])


class ManifestLoader:
    """Load snippet manifests written by the document extractor.

    A manifest is a ``.json`` file holding a list of snippets (or an object
    with a ``snippets`` list), or a ``.jsonl`` file with one snippet per line.
    """

    logger = logging.getLogger("snippet_verifier")

    DEFAULT_PATTERNS: Sequence[str] = ("*.json", "*.jsonl")

    def __init__(self, patterns: Sequence[str] | None = None):
        self.patterns = list(patterns) if patterns else list(self.DEFAULT_PATTERNS)

    def detect_files(self, path: str) -> List[Path]:
        """Return manifest files for a file, directory or glob pattern, sorted.

        Raises:
            FileNotFoundError: If nothing matches
        """
        path_str = str(path)

        if glob.has_magic(path_str):
            matched = sorted(Path(p) for p in glob.glob(path_str, recursive=True))
            files = [p for p in matched if p.is_file()]
            if not files:
                raise FileNotFoundError(f"No manifests match pattern: {path}")
            return files

        path_obj = Path(path)
        if not path_obj.exists():
            raise FileNotFoundError(f"Path not found: {path}")
        if path_obj.is_file():
            return [path_obj]

        files = sorted(
            candidate
            for pattern in self.patterns
            for candidate in path_obj.rglob(pattern)
            if candidate.is_file()
        )
        if not files:
            raise FileNotFoundError(f"No manifests found under: {path}")
        return files

    def load(self, path: str) -> List[RawSnippet]:
        """Load every snippet found under ``path`` in document order."""
        snippets: List[RawSnippet] = []
        for manifest in self.detect_files(path):
            loaded = self.load_file(manifest)
            if loaded and loaded[0].chained:
                # Groups never span manifests.
                loaded[0] = loaded[0].model_copy(update={"chained": False})
            self.logger.info("Loaded %d snippets from %s", len(loaded), manifest)
            snippets.extend(loaded)
        return snippets

    def load_file(self, manifest: Path) -> List[RawSnippet]:
        text = manifest.read_text(encoding="utf-8")
        try:
            if manifest.suffix == ".jsonl":
                payload: Any = [json.loads(line) for line in text.splitlines() if line.strip()]
            else:
                payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{manifest}: invalid JSON ({exc})") from exc

        if isinstance(payload, dict):
            payload = payload.get("snippets", [])

        try:
            return _SNIPPET_LIST.validate_python(payload)
        except ValidationError as exc:
            raise ValueError(f"{manifest}: invalid snippet manifest\n{exc}") from exc


def load_raw_snippets(path: str) -> List[RawSnippet]:
    """Convenience wrapper around ``ManifestLoader().load``."""
    return ManifestLoader().load(path)
