"""
Core - Application infrastructure.

- config/      - Settings
- interfaces/  - Protocols for DI
- connectors/  - Recording readers (EDF, in-memory)
- cache/       - Process-wide recording handle cache
- monitoring/  - Prometheus metrics
- errors.py    - Error taxonomy
"""
