"""
SOP Gateway: Application Package
=================================

What: Read-only HTTP gateway over a Supabase table of SOP records that
      attaches time-limited S3 signed links to the audio each record references.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP parsing & response shaping
    ├─────────────────────────────────────┤
    │  RecordService (enrich / paginate)  │  ← orchestration
    ├──────────────────┬──────────────────┤
    │   RecordStore    │   LinkResolver   │
    │   (Supabase)     │   → AssetSigner  │
    │                  │     (S3 / boto3) │
    └──────────────────┴──────────────────┘

    The two external clients are created once per process and passed down
    through constructors, so every layer can be tested with fakes.
"""

__version__ = "1.0.0"
