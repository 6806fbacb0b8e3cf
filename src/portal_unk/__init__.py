"""portal_unk package.

Financial aggregation engine for the Portal UNK booking back-office. Turns
raw event, payment and DJ rows into revenue totals, commission amounts,
pending/overdue classification and time-windowed dashboard summaries, and
validates event payloads on the write path.

Architecture:
- normalize: numeric/date normalization and record sanitizing/building
- aggregate: commission, financial stats, windowing and dashboard views
- services: write paths and concurrent dashboard fetches over MongoDB
- Pydantic models describe rows and the derived view-models
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
