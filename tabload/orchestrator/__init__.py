"""Ingestion run coordination"""

from .ingestion_pipeline import IngestionPipeline, IngestionResult

__all__ = ['IngestionPipeline', 'IngestionResult']
