"""Read-path aggregation.

Pure reductions over already-fetched snapshots: commission resolution,
financial totals, upcoming-event and monthly-revenue windows, and the
dashboard view assembled from them. Nothing here performs I/O except
`load_snapshot`, which materializes a computed dashboard into MongoDB.
"""
