# Middleware package init
"""
ProjectRepo Backend - Middleware Package
=========================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [Rate Limit] → [GZip] → [CORS] → Route

    - Request ID first so every log line and error body can carry it
    - Logging records rate-limited (429) requests too
    - CORS innermost so preflight responses get the headers
"""
