from __future__ import annotations

import sqlalchemy as sa

# Flat key/value table backing SqlBackingStore (stands in for browser localStorage).
metadata = sa.MetaData()

draft_kv_store = sa.Table(
    "draft_kv_store",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("key", sa.Text, nullable=False),
    sa.Column("value", sa.Text, nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    sa.UniqueConstraint("key", name="uq_draft_kv_store_key"),
)
