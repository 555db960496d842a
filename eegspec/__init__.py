"""
EEG Spectrogram Service

Clean Architecture structure:
- core/      - Application core (config, errors, interfaces, connectors, handle cache)
- common/    - Shared utilities (logging, primitives)
- modules/   - Business modules (spectrogram computation)
- services/  - Compute pool and WebSocket transport
- api/       - HTTP routes (health)
"""

__version__ = "0.3.0"
