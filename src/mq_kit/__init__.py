# Configuration
from .config import EngineConfig

# Documents
from .document import (
    CodeBlock,
    DirTreeResult,
    Document,
    DocumentIndexer,
    Heading,
    Image,
    IndexingError,
    Link,
    ListBlock,
    SearchResults,
    Section,
    Table,
    TreeMode,
    TreeResult,
)

# Engine
from .engine import Engine

# Observability
from .observability import MetricsHook, NoOpMetricsHook

# Parsers
from .parsers import (
    DocumentParseError,
    DocumentParser,
    Format,
    ParsedDocument,
    ParserRegistry,
)

# Queries
from .query import (
    Collection,
    Compiler,
    EvaluationError,
    LexError,
    ParseError,
    QueryBuilder,
    QueryError,
    SectionNotFoundError,
    UnknownNameError,
    parse,
)

__all__ = [
    # Configuration
    "EngineConfig",
    # Documents
    "CodeBlock",
    "DirTreeResult",
    "Document",
    "DocumentIndexer",
    "Heading",
    "Image",
    "IndexingError",
    "Link",
    "ListBlock",
    "SearchResults",
    "Section",
    "Table",
    "TreeMode",
    "TreeResult",
    # Engine
    "Engine",
    # Observability
    "MetricsHook",
    "NoOpMetricsHook",
    # Parsers
    "DocumentParseError",
    "DocumentParser",
    "Format",
    "ParsedDocument",
    "ParserRegistry",
    # Queries
    "Collection",
    "Compiler",
    "EvaluationError",
    "LexError",
    "ParseError",
    "QueryBuilder",
    "QueryError",
    "SectionNotFoundError",
    "UnknownNameError",
    "parse",
]
