"""
Core business logic components.

This package contains the forwarding pipeline:
- Payload decoding (base64, gzip, envelope)
- Event classification and enrichment
- Async HTTP sender
- Metrics collection
"""
