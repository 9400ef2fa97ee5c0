"""initial reachsync schema

Revision ID: rs0001aaA01
Revises:
Create Date: 2026-10-19 09:00:00.000000

Hey future me - the whole schema in one go:

- reachsync_artists: canonical artist, account_id is the (unique, nullable) binding
- social links / tracks / rank entries / fanbase snapshot: per-artist snapshots,
  replaced on every sync and tagged with sync_generation
- reachsync_metric_points: append-only chart history, unique per
  (artist, date, platform, metric_type) so a same-day re-sync overwrites
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'rs0001aaA01'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'reachsync_artists',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('external_id', sa.String(64), nullable=False),
        sa.Column('account_id', sa.String(64), nullable=True),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, server_default=''),
        sa.Column('image_url', sa.String(512), nullable=True),
        sa.Column('bio', sa.Text, nullable=True),
        sa.Column('country', sa.String(64), nullable=True),
        sa.Column('genre', sa.String(128), nullable=True),
        sa.Column('subgenres', sa.Text, nullable=True),
        sa.Column('rank', sa.Integer, nullable=False, server_default='0'),
        sa.Column('verified', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('sync_generation', sa.Integer, nullable=False, server_default='0'),
        sa.Column('last_fetched_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_reachsync_artists_external_id', 'reachsync_artists', ['external_id'], unique=True)
    op.create_index('ix_reachsync_artists_account_id', 'reachsync_artists', ['account_id'], unique=True)

    op.create_table(
        'reachsync_social_links',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('artist_id', sa.String(36), sa.ForeignKey('reachsync_artists.id', ondelete='CASCADE'), nullable=False),
        sa.Column('platform', sa.String(32), nullable=False),
        sa.Column('url', sa.String(1024), nullable=False),
        sa.Column('sync_generation', sa.Integer, nullable=False, server_default='0'),
        sa.UniqueConstraint('artist_id', 'platform', name='uq_social_link_artist_platform'),
    )
    op.create_index('ix_reachsync_social_links_artist_id', 'reachsync_social_links', ['artist_id'])

    op.create_table(
        'reachsync_tracks',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('artist_id', sa.String(36), sa.ForeignKey('reachsync_artists.id', ondelete='CASCADE'), nullable=False),
        sa.Column('external_track_id', sa.String(128), nullable=False),
        sa.Column('name', sa.String(512), nullable=False),
        sa.Column('source', sa.String(32), nullable=False, server_default='viberate'),
        sa.Column('sync_generation', sa.Integer, nullable=False, server_default='0'),
        sa.UniqueConstraint('artist_id', 'external_track_id', name='uq_track_artist_external'),
    )
    op.create_index('ix_reachsync_tracks_artist_id', 'reachsync_tracks', ['artist_id'])

    op.create_table(
        'reachsync_rank_entries',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('artist_id', sa.String(36), sa.ForeignKey('reachsync_artists.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rank_type', sa.String(128), nullable=False),
        sa.Column('current_value', sa.Integer, nullable=True),
        sa.Column('previous_value', sa.Integer, nullable=True),
        sa.Column('sync_generation', sa.Integer, nullable=False, server_default='0'),
        sa.UniqueConstraint('artist_id', 'rank_type', name='uq_rank_entry_artist_type'),
    )
    op.create_index('ix_reachsync_rank_entries_artist_id', 'reachsync_rank_entries', ['artist_id'])

    op.create_table(
        'reachsync_fanbase_snapshots',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('artist_id', sa.String(36), sa.ForeignKey('reachsync_artists.id', ondelete='CASCADE'), nullable=False),
        sa.Column('total_fans', sa.Integer, nullable=False, server_default='0'),
        sa.Column('distribution', sa.JSON, nullable=False),
        sa.Column('raw_payload', sa.JSON, nullable=False),
        sa.Column('fetched_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sync_generation', sa.Integer, nullable=False, server_default='0'),
        sa.UniqueConstraint('artist_id', name='uq_fanbase_snapshot_artist'),
    )

    op.create_table(
        'reachsync_metric_points',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('artist_id', sa.String(36), sa.ForeignKey('reachsync_artists.id'), nullable=False),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('platform', sa.String(32), nullable=False),
        sa.Column('metric_type', sa.String(32), nullable=False),
        sa.Column('value', sa.Float, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            'artist_id', 'date', 'platform', 'metric_type',
            name='uq_metric_point_artist_date_platform_type',
        ),
    )
    op.create_index('ix_metric_points_artist_date', 'reachsync_metric_points', ['artist_id', 'date'])


def downgrade() -> None:
    op.drop_index('ix_metric_points_artist_date', table_name='reachsync_metric_points')
    op.drop_table('reachsync_metric_points')
    op.drop_table('reachsync_fanbase_snapshots')
    op.drop_index('ix_reachsync_rank_entries_artist_id', table_name='reachsync_rank_entries')
    op.drop_table('reachsync_rank_entries')
    op.drop_index('ix_reachsync_tracks_artist_id', table_name='reachsync_tracks')
    op.drop_table('reachsync_tracks')
    op.drop_index('ix_reachsync_social_links_artist_id', table_name='reachsync_social_links')
    op.drop_table('reachsync_social_links')
    op.drop_index('ix_reachsync_artists_account_id', table_name='reachsync_artists')
    op.drop_index('ix_reachsync_artists_external_id', table_name='reachsync_artists')
    op.drop_table('reachsync_artists')
