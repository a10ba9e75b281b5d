"""
Prefect flows for the collection pipeline.

Flows:
- collection: search GBIF, save metadata, download and downscale images

Usage (local):
    python -m virtual_herbarium.flows.collection

Usage (Prefect):
    prefect server start  # Optional, for dashboard
    prefect deployment run 'build-virtual-collection/default'
"""
