"""
SYSTEM VERSION — CANONICAL SOURCE OF TRUTH

This file is the SINGLE authoritative version marker
for the creative tracker draft + spellcheck core.

RULES (ENFORCED BY CONVENTION):
- Any change to the persisted draft layout REQUIRES a STORAGE_SCHEMA_VERSION bump
- A schema bump REQUIRES a migrate_from_vN() path in services/draft_storage_v2.py
- Read by the drafts CLI (`--version`)
"""

SYSTEM_NAME = "Creative Tracker / Draft Core"

# Semantic Versioning (MAJOR.MINOR.PATCH)
# MAJOR — persisted format change without a migration path (VERY RARE)
# MINOR — feature addition without breaking stored drafts
# PATCH — bugfix / internal hardening
VERSION = "1.0.0"

# 1 = legacy "single-upload-draft-<filename>" raw form objects
# 2 = "draft-v2-<draftId>" full DraftRecord documents
STORAGE_SCHEMA_VERSION = 2

# Release channel indicates operational stability,
# not feature completeness
RELEASE_CHANNEL = "stable"
