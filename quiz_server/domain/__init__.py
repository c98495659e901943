"""Domain layer (pure logic).

- Keep quiz, wheel and code rules here.
- Avoid I/O beyond reading the catalog file once at startup: no HTTP/FastAPI, no CSV sink.
- Prefer deterministic functions (time/random passed in as arguments).
"""
