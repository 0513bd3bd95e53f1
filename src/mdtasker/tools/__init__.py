from .document_tools import register_document_tools

__all__ = ["register_document_tools"]
