"""responses-adapter - Responses API on top of a chat-completion backend

Accepts OpenAI Responses API requests, forwards them to a backend that only
speaks chat completions, and translates the reply (single-shot or streamed)
back into Responses API envelopes and events. Everything else is passed
through to the backend unchanged.

Example:
    >>> from responses_adapter.main import app
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=4011)
"""

__version__ = "0.1.0"
