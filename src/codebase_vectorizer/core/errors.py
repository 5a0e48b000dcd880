"""
Exception types for codebase-vectorizer
"""


class VectorizerError(Exception):
    """Base class for all vectorizer errors"""


class BackendUnavailableError(VectorizerError):
    """Raised when the embedding model runtime or vector store engine is not installed"""

    def __init__(self, component: str, install_hint: str = "pip install codebase-vectorizer"):
        self.component = component
        self.install_hint = install_hint
        super().__init__(f"{component} backend not available. Install with: {install_hint}")


class UnknownIndexError(VectorizerError):
    """Raised when an index name has no preset and no configured pattern"""

    def __init__(self, index_name: str):
        self.index_name = index_name
        super().__init__(
            f"Unknown index '{index_name}': no built-in preset and no 'pattern' configured for it"
        )
