"""
Grammar store: where the orchestrator finds a site's AdapterGrammar.

Built-in grammars cover the LightNovel WordPress sites known to work. A
directory of JSON files (one grammar per file, named after the site id)
can add sites or override a built-in one without touching code:

- New site: write its grammar with `put()` (or by hand) and load it by id
- Theme tweak: edit the JSON file; it wins over the built-in grammar
- Debugging: the JSON shows exactly which predicates the engine uses
"""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .grammar import AdapterGrammar, lightnovelwp
from .exceptions import SerialParserError
from .logger import get_module_logger

logger = get_module_logger("grammar_store")


BUILTIN_GRAMMARS: dict[str, AdapterGrammar] = {
    grammar.id: grammar
    for grammar in (
        lightnovelwp(
            "knoxt", "KnoxT", "https://knoxt.space/",
            lang="English", reverse_chapters=True,
        ),
        lightnovelwp(
            "kolnovel", "Kol Novel", "https://kolnovel.site/",
            lang="Arabic", reverse_chapters=True, strip_style_classes=True,
        ),
        lightnovelwp(
            "novelsparadise", "Novels Paradise", "https://novelsparadise.site/",
            lang="Arabic", reverse_chapters=True,
        ),
        lightnovelwp(
            "allnovelread", "AllNovelRead", "https://allnovelread.com/",
            lang="Spanish", reverse_chapters=True,
        ),
    )
}


class UnknownSite(SerialParserError):
    """Raised when no grammar is registered under an id."""

    def __init__(self, site_id: str):
        super().__init__(f"No grammar for site '{site_id}'", {"site_id": site_id})
        self.site_id = site_id


class GrammarStore:
    """
    File-based grammar store layered over the built-in registry.

    Files are `<site id>.json`, each holding one AdapterGrammar dump.
    """

    def __init__(self, grammar_dir: Optional[Union[str, Path]] = None):
        """
        Args:
            grammar_dir: Directory of grammar JSON files. None means
                         built-in grammars only.
        """
        self.grammar_dir = Path(grammar_dir) if grammar_dir else None
        if self.grammar_dir is not None:
            self.grammar_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Grammar store at: {self.grammar_dir}")

    def _file_for(self, site_id: str) -> Optional[Path]:
        if self.grammar_dir is None:
            return None
        # Ids become file names; keep them filesystem safe
        safe_id = "".join(c if c.isalnum() or c in "-_." else "_" for c in site_id)
        return self.grammar_dir / f"{safe_id}.json"

    def get(self, site_id: str) -> AdapterGrammar:
        """
        Grammar for `site_id`; a stored file takes precedence over the built-in.

        Raises:
            UnknownSite: neither a file nor a built-in grammar exists
            SerialParserError: the stored file is not a valid grammar
        """
        grammar_file = self._file_for(site_id)
        if grammar_file is not None and grammar_file.exists():
            try:
                grammar = AdapterGrammar.model_validate_json(grammar_file.read_text(encoding="utf-8"))
            except ValidationError as e:
                raise SerialParserError(
                    f"Invalid grammar file {grammar_file}",
                    {"errors": e.errors()},
                ) from e
            logger.debug(f"Loaded grammar '{site_id}' from {grammar_file}")
            return grammar

        if site_id in BUILTIN_GRAMMARS:
            return BUILTIN_GRAMMARS[site_id]

        raise UnknownSite(site_id)

    def put(self, grammar: AdapterGrammar) -> Path:
        """Write a grammar to the store. Returns the file written."""
        grammar_file = self._file_for(grammar.id)
        if grammar_file is None:
            raise SerialParserError("Grammar store has no directory to write to")
        grammar_file.write_text(
            json.dumps(grammar.model_dump(mode="json"), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        logger.info(f"Stored grammar '{grammar.id}' -> {grammar_file}")
        return grammar_file

    def delete(self, site_id: str) -> bool:
        """Remove a stored grammar. Built-in grammars cannot be deleted."""
        grammar_file = self._file_for(site_id)
        if grammar_file is not None and grammar_file.exists():
            grammar_file.unlink()
            logger.info(f"Deleted stored grammar '{site_id}'")
            return True
        return False

    def list_sites(self) -> list[str]:
        """Ids of every available grammar, stored and built-in."""
        ids = set(BUILTIN_GRAMMARS)
        if self.grammar_dir is not None:
            ids.update(path.stem for path in self.grammar_dir.glob("*.json"))
        return sorted(ids)
