from .directory import (
    DirFileNode,
    DirHeading,
    DirTreeResult,
    DocumentLoader,
    build_dir_tree,
    search_dir,
)
from .errors import IndexingError
from .indexer import DocumentIndexer
from .models import (
    CodeBlock,
    Document,
    Element,
    Heading,
    Image,
    Link,
    ListBlock,
    ListItem,
    Paragraph,
    Section,
    Table,
)
from .search import SearchMatch, SearchResults, extract_snippet, search
from .tree import (
    TreeMode,
    TreeNode,
    TreeResult,
    build_section_tree,
    build_tree,
    extract_preview,
)

__all__ = [
    "CodeBlock",
    "DirFileNode",
    "DirHeading",
    "DirTreeResult",
    "Document",
    "DocumentIndexer",
    "DocumentLoader",
    "Element",
    "Heading",
    "Image",
    "IndexingError",
    "Link",
    "ListBlock",
    "ListItem",
    "Paragraph",
    "SearchMatch",
    "SearchResults",
    "Section",
    "Table",
    "TreeMode",
    "TreeNode",
    "TreeResult",
    "build_dir_tree",
    "build_section_tree",
    "build_tree",
    "extract_preview",
    "extract_snippet",
    "search",
    "search_dir",
]
