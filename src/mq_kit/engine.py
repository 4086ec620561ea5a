# src/mq_kit/engine.py

import logging
from pathlib import Path
from typing import Any

from mq_kit.config import EngineConfig
from mq_kit.document.directory import DirTreeResult, build_dir_tree, search_dir
from mq_kit.document.indexer import DocumentIndexer
from mq_kit.document.models import Document
from mq_kit.document.search import SearchResults, search
from mq_kit.document.tree import TreeMode, TreeResult, build_tree
from mq_kit.observability import names, timed
from mq_kit.observability.base import MetricsHook, NoOpMetricsHook
from mq_kit.parsers.models import Format
from mq_kit.parsers.registry import ParserRegistry, default_registry, detect_format
from mq_kit.query.ast import QueryNode
from mq_kit.query.builder import QueryBuilder
from mq_kit.query.compiler import Compiler, EvalContext, ExecutionPlan
from mq_kit.query.errors import QueryError

logger = logging.getLogger(__name__)


class Engine:
    """Entry point tying format parsers, the indexer and the query compiler together.

    Example:
        >>> engine = Engine()
        >>> doc = engine.load_document("README.md")
        >>> engine.query(doc, '.headings | filter(.level == 2) | map(.text)')
    """

    def __init__(
        self,
        config: EngineConfig = EngineConfig(),
        parser_registry: ParserRegistry | None = None,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self.config = config
        self.parser_registry = parser_registry or default_registry()
        self.metrics_hook = metrics_hook
        self.indexer = DocumentIndexer(metrics_hook=metrics_hook)
        self.compiler = Compiler(config)

    # Documents

    def parse_document(
        self,
        source: bytes | str,
        path: str = "",
        format: Format | None = None,
    ) -> Document:
        """Parse and index in-memory content.

        Raises:
            DocumentParseError: If the format parser rejects the content.
            IndexingError: If the parsed content tree cannot be indexed.
            KeyError: If no parser is registered for the format.
        """
        if isinstance(source, str):
            source = source.encode("utf-8")
        format = format or detect_format(path, source)
        parser = self.parser_registry.get(format)
        return self.indexer.index(parser.parse(source, path))

    def load_document(self, path: str | Path) -> Document:
        content = Path(path).read_bytes()
        logger.debug("Loading %s (%d bytes)", path, len(content))
        return self.parse_document(content, str(path), detect_format(path, content))

    # Queries

    def compile(self, query: str | QueryNode) -> ExecutionPlan:
        if isinstance(query, str):
            return self.compiler.compile_string(query)
        return self.compiler.compile(query)

    def query(self, document: Document, query: str | QueryNode | ExecutionPlan) -> Any:
        """Evaluate ``query`` against ``document`` and return its single result.

        Every failure, from lexing to evaluation, is raised as a QueryError.
        """
        self.metrics_hook.increment(names.QUERY_REQUESTS_TOTAL)
        try:
            with timed(self.metrics_hook, names.QUERY_DURATION):
                plan = query if callable(query) else self.compile(query)
                return plan(EvalContext.for_document(document))
        except QueryError as exc:
            logger.debug("Query failed on %s: %s", document.path, exc)
            self.metrics_hook.increment(
                names.QUERY_ERRORS_TOTAL, labels={"error": type(exc).__name__}
            )
            raise

    def from_document(self, document: Document) -> QueryBuilder:
        return QueryBuilder(document, self.compiler)

    # Read-only views

    def tree(self, document: Document, mode: str | TreeMode = TreeMode.DEFAULT) -> TreeResult:
        return build_tree(document, TreeMode.parse(mode), self.config.preview_chars)

    def search(self, document: Document, query: str) -> SearchResults:
        with timed(self.metrics_hook, names.SEARCH_DURATION):
            results = search(document, query, self.config.snippet_context)
        self.metrics_hook.increment(names.SEARCH_MATCHES_TOTAL, len(results.matches))
        return results

    def search_dir(self, path: str | Path, query: str) -> SearchResults:
        with timed(self.metrics_hook, names.SEARCH_DURATION, {"scope": "directory"}):
            results = search_dir(
                path,
                query,
                self.load_document,
                context=self.config.snippet_context,
                metrics_hook=self.metrics_hook,
            )
        self.metrics_hook.increment(names.SEARCH_MATCHES_TOTAL, len(results.matches))
        return results

    def build_dir_tree(
        self, path: str | Path, mode: str | TreeMode = TreeMode.DEFAULT
    ) -> DirTreeResult:
        return build_dir_tree(
            path,
            TreeMode.parse(mode),
            self.load_document,
            preview_chars=self.config.preview_chars,
            metrics_hook=self.metrics_hook,
        )
