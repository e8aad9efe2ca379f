"""Ingestion module -- PDF extraction and the chunk/embed/upsert pipeline."""

from src.ingestion.pipeline import DocumentMetadata, DocumentPipeline, IngestionResult

__all__ = ["DocumentMetadata", "DocumentPipeline", "IngestionResult"]
