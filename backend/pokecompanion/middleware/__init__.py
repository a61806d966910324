"""
PokéCompanion Backend: Middleware Package
==========================================

Request → [CORS] → [Request ID] → [Logging] → [Rate Limit] → Route Handler

The request id is set before the logging middleware reads it. Rate limiting
runs innermost, so throttled credential requests are still logged and
answered with the request id.
"""
