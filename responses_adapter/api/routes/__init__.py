"""API routes for the adapter."""

from .models import list_models
from .passthrough import catch_all, chat_completions, embeddings, forward_to_backend
from .responses import responses_endpoint

__all__ = [
    "catch_all",
    "chat_completions",
    "embeddings",
    "forward_to_backend",
    "list_models",
    "responses_endpoint",
]
