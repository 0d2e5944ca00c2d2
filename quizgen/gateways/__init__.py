"""Retrieval and generation gateways consumed by the pipeline."""

from .base import EventPublisher, GenerationGateway, RetrievalGateway

__all__ = ["EventPublisher", "GenerationGateway", "RetrievalGateway"]
