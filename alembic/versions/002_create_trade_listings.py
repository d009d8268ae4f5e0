"""002: create trade_listings table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE trade_listings (
            id              VARCHAR(64)  PRIMARY KEY,
            seller_id       VARCHAR(64)  NOT NULL REFERENCES accounts (user_id),
            item            VARCHAR(64)  NOT NULL,
            amount          INTEGER      NOT NULL,
            listed_amount   INTEGER      NOT NULL,
            price           BIGINT       NOT NULL,
            currency        VARCHAR(20)  NOT NULL,
            status          VARCHAR(20)  NOT NULL DEFAULT 'ACTIVE',
            listed_at       TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            purchases       JSONB        NOT NULL DEFAULT '[]'::jsonb,
            version         BIGINT       NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_listing_amount_gte_0   CHECK (amount >= 0),
            CONSTRAINT ck_listing_amount_lte_listed CHECK (amount <= listed_amount),
            CONSTRAINT ck_listing_listed_gte_1   CHECK (listed_amount >= 1),
            CONSTRAINT ck_listing_price_gte_0    CHECK (price >= 0),
            CONSTRAINT ck_listing_currency       CHECK (currency IN ('xCookies')),
            CONSTRAINT ck_listing_status         CHECK (
                status IN ('ACTIVE', 'SOLD', 'COMPLETED')
            ),
            CONSTRAINT ck_listing_sold_iff_empty CHECK (
                status = 'COMPLETED' OR ((status = 'SOLD') = (amount = 0))
            )
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_trade_listings_updated_at
            BEFORE UPDATE ON trade_listings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE INDEX idx_listings_status_time
        ON trade_listings (status, listed_at DESC, id DESC);
    """)
    op.execute("""
        CREATE INDEX idx_listings_seller_status
        ON trade_listings (seller_id, status, listed_at DESC);
    """)
    op.execute("CREATE INDEX idx_listings_item ON trade_listings (item) WHERE status = 'ACTIVE';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS trade_listings CASCADE;")
