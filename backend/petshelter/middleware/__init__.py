# Middleware package init
"""
Shelter Pets Backend: Middleware Package
=========================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID first, so every later log line can carry it
    - Logging sees the final status code and total duration
"""
