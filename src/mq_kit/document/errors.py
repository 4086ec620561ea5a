# src/mq_kit/document/errors.py


class IndexingError(Exception):
    """The content tree handed to the indexer could not be walked."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"building indexes for {path or '<memory>'}: {message}")
