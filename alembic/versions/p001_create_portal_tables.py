"""Create portal content and registration tables

Revision ID: p001_create_portal
Revises:
Create Date: 2026-10-18

This migration creates:
- profiles: identity-provider users with admin flag and soft delete
- posts / post_content: blog posts and their per-language content
- events / event_content: events and their per-language content
- about_settings / about_content: the about page singleton
- event_registrations: the registration ledger
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'p001_create_portal'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    ]


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(), primary_key=True),  # identity provider subject
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('newsletter_subscribed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'])

    # Posts
    op.create_table(
        'posts',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('slug', sa.String(200), nullable=False),
        sa.Column('published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('author_id', sa.String(), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('banner_url', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_posts_slug', 'posts', ['slug'], unique=True)

    op.create_table(
        'post_content',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('post_id', sa.String(), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lang', sa.String(5), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('excerpt', sa.Text(), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('post_id', 'lang', name='post_content_post_lang_unique'),
    )
    op.create_index('ix_post_content_post_id', 'post_content', ['post_id'])

    # Events
    event_type = sa.Enum('online', 'in_person', name='event_type_enum')
    event_status = sa.Enum('draft', 'published', 'cancelled', 'completed', name='event_status_enum')
    op.create_table(
        'events',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('slug', sa.String(200), nullable=False),
        sa.Column('type', event_type, nullable=False, server_default='online'),
        sa.Column('status', event_status, nullable=False, server_default='draft'),
        sa.Column('starts_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ends_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('host', sa.String(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('google_maps_url', sa.String(), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=True),  # NULL = unlimited
        sa.Column('price', sa.Numeric(10, 2), nullable=False, server_default=sa.text('0')),
        sa.Column('banner_url', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_events_slug', 'events', ['slug'], unique=True)
    op.create_index('ix_events_starts_at', 'events', ['starts_at'])

    op.create_table(
        'event_content',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('event_id', sa.String(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lang', sa.String(5), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('detail', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('event_id', 'lang', name='event_content_event_lang_unique'),
    )
    op.create_index('ix_event_content_event_id', 'event_content', ['event_id'])

    # About page
    op.create_table(
        'about_settings',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('admin_name', sa.String(), nullable=True),
        sa.Column('vision_image_url', sa.String(), nullable=True),
        *_timestamps(),
    )

    about_values = []
    for i in range(3):
        about_values.append(sa.Column(f'values_v{i}_title', sa.String(), nullable=True))
        about_values.append(sa.Column(f'values_v{i}_message', sa.Text(), nullable=True))

    op.create_table(
        'about_content',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('about_id', sa.String(), sa.ForeignKey('about_settings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lang', sa.String(5), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('hero_title', sa.String(), nullable=True),
        sa.Column('hero_subtitle', sa.String(), nullable=True),
        sa.Column('vision_title', sa.String(), nullable=True),
        sa.Column('vision_paragraphs', sa.Text(), nullable=True),  # JSON list
        *about_values,
        sa.Column('quote_text', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('about_id', 'lang', name='about_content_about_lang_unique'),
    )
    op.create_index('ix_about_content_about_id', 'about_content', ['about_id'])

    # Registration ledger
    registration_status = sa.Enum(
        'pending', 'confirmed', 'failed', 'refunded', 'cancelled',
        name='registration_status_enum',
    )
    op.create_table(
        'event_registrations',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('event_id', sa.String(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('payment_reference', sa.String(), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False, server_default=sa.text('0')),
        sa.Column('status', registration_status, nullable=False, server_default='pending'),
        sa.Column('payment_attempts', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('attendee_name', sa.String(), nullable=False),
        sa.Column('attendee_email', sa.String(), nullable=False),
        sa.Column('attendee_phone', sa.String(), nullable=True),
        *_timestamps(),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('event_id', 'user_id', name='event_registrations_event_user_unique'),
    )
    op.create_index('ix_event_registrations_event_id', 'event_registrations', ['event_id'])
    op.create_index('ix_event_registrations_user_id', 'event_registrations', ['user_id'])
    op.create_index('ix_event_registrations_payment_reference', 'event_registrations', ['payment_reference'])
    # Unattached pending rows are looked up by status and age
    op.create_index('idx_registrations_status_updated', 'event_registrations', ['status', 'updated_at'])


def downgrade() -> None:
    op.drop_table('event_registrations')
    op.drop_table('about_content')
    op.drop_table('about_settings')
    op.drop_table('event_content')
    op.drop_table('events')
    op.drop_table('post_content')
    op.drop_table('posts')
    op.drop_table('profiles')
    sa.Enum(name='registration_status_enum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='event_status_enum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='event_type_enum').drop(op.get_bind(), checkfirst=True)
