# Services package init
"""
SOP Gateway: Services Layer
============================

What:  Business logic between the routes (HTTP) and the external clients.

Service Inventory:
    - AssetSigner (abstract): Interface for presigned-URL providers
    - S3AssetSigner: boto3 implementation of AssetSigner
    - LinkResolver: Asset reference → signed link, with fallback on failure
    - RecordService: Enrichment, pagination and single-record lookup
"""
